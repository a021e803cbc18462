"""Streamlit front end for the FTP client."""
