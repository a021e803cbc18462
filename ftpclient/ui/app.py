import os
import tempfile
import threading
import time
import traceback
import logging
from datetime import datetime

import streamlit as st

from ftpclient.config import ClientConfig, configure_logging
from ftpclient.core import FtpClient, ListingResponse, DirectoryResponse, TransferMode
from ftpclient.ui.levenstein import get_suggestion

config = ClientConfig.from_env()
configure_logging(config.log_level)
logger = logging.getLogger(__name__)


st.set_page_config(page_title="FTP Client UI", layout="wide")

# --- Helpers -----------------------------------------------------------------

# A lightweight wrapper to run blocking network calls in a thread and capture exceptions
def run_in_thread(fn, *args, **kwargs):
    result = {"value": None, "error": None}
    def target():
        try:
            result["value"] = fn(*args, **kwargs)
        except Exception as e:
            result["error"] = e
    t = threading.Thread(target=target)
    t.start()
    return t, result


def wait_with_spinner(t, label, progress=False):
    with st.spinner(label):
        bar = st.progress(0) if progress else None
        start = time.time()
        while t.is_alive():
            time.sleep(0.1)
            if bar is not None:
                # animate while the transfer runs, keep below 100 until done
                bar.progress(min(99, int(((time.time() - start) * 10) % 100)))
        if bar is not None:
            bar.progress(100)


def show_response(response):
    if response is None:
        return
    if response.is_success:
        st.success(str(response))
    else:
        st.error(str(response))


def save_upload(uploaded_file):
    """Write a Streamlit upload to a temp dir under its own name (the remote name)."""
    folder = tempfile.mkdtemp(prefix="ftpclient_upload_")
    local_path = os.path.join(folder, uploaded_file.name)
    with open(local_path, "wb") as f:
        f.write(uploaded_file.getbuffer())
    return local_path


def dispatch(client: FtpClient, verb: str, args, uploaded_file):
    """Map a command-box verb onto an FtpClient operation."""
    arg = " ".join(args)
    mode = TransferMode.BINARY
    if verb in ("list", "ls"):
        return client.get_directory_listing(arg)
    if verb == "nlst":
        return client.get_name_listing(arg)
    if verb == "pwd":
        return client.get_working_directory()
    if verb == "cwd":
        return client.change_directory(arg)
    if verb == "cdup":
        return client.parent_directory()
    if verb == "mkd":
        return client.create_directory(arg)
    if verb == "rmd":
        return client.delete_directory(arg)
    if verb == "dele":
        return client.delete_file(arg)
    if verb in ("rename", "rnfr"):
        if len(args) != 2:
            raise ValueError("Usage: RENAME old_name new_name")
        return client.rename_file(args[0], args[1])
    if verb == "noop":
        return client.keep_alive()
    if verb == "login":
        return client.login(*args[:2]) if args else client.login()
    if verb == "retr":
        if not args:
            raise ValueError("Usage: RETR remote_filename [local_dir]")
        local_dir = args[1] if len(args) > 1 else config.download_dir
        return client.download(args[0], local_dir, mode)
    if verb in ("stor", "appe"):
        if uploaded_file is None:
            raise ValueError("Select a file to upload using the uploader above.")
        remote_dir = args[0] if args else ""
        return client.upload(save_upload(uploaded_file), remote_dir, mode, append=(verb == "appe"))
    if verb == "raw":
        if not args:
            raise ValueError("Usage: RAW COMMAND [parameter]")
        return client.send_command(args[0].upper(), " ".join(args[1:]))
    if verb in ("user", "pass", "type", "quit"):
        return client.send_command(verb.upper(), arg)
    return None


if "client" not in st.session_state:
    st.session_state["client"] = FtpClient(transport_factory=config.transport_factory())
client: FtpClient = st.session_state["client"]


# --- UI ----------------------------------------------------------------------
st.title("FTP Client")

with st.sidebar:
    st.header("Connection")
    host = st.text_input("Host", value=config.host)
    port = st.number_input("Port", min_value=1, max_value=65535, value=config.port)
    timeout = st.number_input("Timeout (s)", min_value=0.0, max_value=60.0, value=float(config.connect_timeout))
    if st.button("Connect"):
        logger.info(f"[UI] Connect button clicked: {host}:{port}")
        response = client.connect(host, int(port), float(timeout))
        show_response(response)

    st.header("Login")
    user = st.text_input("User", value=config.user or "anonymous")
    password = st.text_input("Password", value=config.password or "", type="password")
    if st.button("Login"):
        logger.info(f"[UI] Login as {user}")
        if user == "anonymous" and not password:
            response = client.login()
        else:
            response = client.login(user, password)
        show_response(response)

    if st.button("Disconnect"):
        logger.info("[UI] Disconnect button clicked")
        show_response(client.disconnect())

    st.caption(f"State: {client.state.value}")


col1, col2 = st.columns([3, 1])

with col1:
    st.subheader("Terminal")
    cmd = st.text_input("Command", placeholder="e.g. LIST, CWD pub, RETR readme.txt", key="cmd_input")
    cmd_run = st.button("Run")

    # File upload for STOR/APPE
    uploaded_file = st.file_uploader("Upload file for STOR / APPE", key="upload_file")

    if cmd_run and cmd:
        logger.info(f"[UI] Command executed: {cmd}")
        parts = cmd.strip().split()
        verb = parts[0].lower()
        if not client.is_connected:
            st.error("Not connected. Connect first.")
        else:
            t, result = run_in_thread(dispatch, client, verb, parts[1:], uploaded_file)
            wait_with_spinner(t, "Running...", progress=verb in ("retr", "stor", "appe"))
            if result["error"] is not None:
                logger.error(f"[UI] Command error: {result['error']}")
                if isinstance(result["error"], ValueError):
                    st.error(str(result["error"]))
                else:
                    st.error(f"Unhandled exception:\n{''.join(traceback.format_exception(result['error']))}")
            elif result["value"] is None:
                logger.warning(f"[UI] Unknown command: {verb}")
                st.error(f"Unknown command: {verb}")
                suggestion = get_suggestion(verb)
                if suggestion:
                    st.write(f"Try with {suggestion}")
            else:
                out = result["value"]
                last = client.history[-1] if client.history else None
                if last and last.get("prelim"):
                    st.info(str(last["prelim"]))
                if isinstance(out, ListingResponse) and out.listing:
                    st.text_area("Listing", value="\n".join(out.listing), height=250)
                if isinstance(out, DirectoryResponse) and out.directory:
                    st.write(f"Directory: `{out.directory}`")
                show_response(out)

with col2:
    st.subheader("History")
    hist = client.get_history()
    if st.button("Clear History"):
        client.clear_history()
        st.rerun()
    for entry in reversed(hist[-100:]):
        t = entry.get("time")
        time_str = t.isoformat() if isinstance(t, datetime) else str(t)
        with st.expander(f"{time_str} — {entry.get('command')}"):
            if entry.get("data"):
                st.text_area("Data", value=entry["data"], height=150, key=f"data_{id(entry)}")
            if entry.get("file"):
                st.write(f"File: {entry['file']}")
            response = entry.get("response")
            if response is not None:
                st.write(f"Code: {int(response.status)}")
                st.write(f"Type: {response.type}")
                st.code("\n".join(response.lines) or response.message)
            if entry.get("error"):
                st.error("This entry had an error")


# Footer
st.markdown("---")
st.caption("FTP Streamlit UI — command history, transfer progress and errors.")
