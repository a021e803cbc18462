#!/usr/bin/env python3
"""
Entry point for the FTP client.

`ftpclient-ui` (or `ftpclient ui`) starts the Streamlit client UI.
`ftpclient ls|get|put ...` runs one operation against the configured server
and prints the final reply. Connection settings come from the environment
(see config.py) and can be overridden with flags.
"""

import argparse
import importlib.util
import logging
import os
import subprocess
import sys

from .config import ClientConfig, configure_logging
from .core import FtpClient, TransferMode

logger = logging.getLogger("ftpclient")

APP_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'ui', 'app.py')


def verify_dependencies(config: ClientConfig):
    """
    Verify that the UI dependencies are importable.
    This helps catch missing dependencies early.
    """
    if config.fast_start:
        logger.info("FAST_START enabled — skipping dependency verification")
        return True

    if importlib.util.find_spec('streamlit') is None:
        logger.error("✗ Missing required module: streamlit")
        logger.error("  Install it with: pip install streamlit")
        return False

    logger.info("✓ streamlit available")
    return True


def start_streamlit_client(host='0.0.0.0', port=8501):
    """
    Start the Streamlit FTP client UI.

    Args:
        host: Host to bind Streamlit to
        port: Port to expose Streamlit on (default: 8501)
    """
    logger.info(f"Starting Streamlit FTP Client UI on {host}:{port}...")
    os.environ['STREAMLIT_TELEMETRY_ENABLED'] = 'false'

    cmd = [
        'streamlit',
        'run',
        APP_PATH,
        f'--server.port={port}',
        f'--server.address={host}',
        '--logger.level=info',
        '--client.showErrorDetails=true'
    ]

    # Replace the current process so signals reach Streamlit directly
    try:
        os.execvp(cmd[0], cmd)
    except OSError as e:
        logger.error(f"Failed to exec Streamlit: {e}")
        # Fall back to the module entry point when the script is not on PATH
        result = subprocess.run([sys.executable, '-m'] + cmd)
        sys.exit(result.returncode)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ftpclient", description="Passive mode FTP client")
    parser.add_argument("--host", help="FTP server host (FTP_HOST)")
    parser.add_argument("--port", type=int, help="FTP server port (FTP_PORT)")
    parser.add_argument("--timeout", type=float, help="Connect timeout in seconds (FTP_CONNECT_TIMEOUT)")
    parser.add_argument("--user", help="User name, anonymous if omitted (FTP_USER)")
    parser.add_argument("--password", help="Password (FTP_PASSWORD)")
    parser.add_argument("--log-level", help="Logging level (FTP_LOG_LEVEL)")

    sub = parser.add_subparsers(dest="action")

    ui = sub.add_parser("ui", help="Start the Streamlit UI")
    ui.add_argument("--bind", default="0.0.0.0", help="Address the UI listens on")
    ui.add_argument("--ui-port", type=int, default=8501, help="Port the UI listens on")

    ls = sub.add_parser("ls", help="List a remote directory")
    ls.add_argument("directory", nargs="?", default="")

    get = sub.add_parser("get", help="Download a remote file")
    get.add_argument("remote_file")
    get.add_argument("local_dir", nargs="?", default=".")
    get.add_argument("--ascii", action="store_true", help="Transfer in ASCII mode")

    put = sub.add_parser("put", help="Upload a local file")
    put.add_argument("local_file")
    put.add_argument("remote_dir", nargs="?", default="")
    put.add_argument("--ascii", action="store_true", help="Transfer in ASCII mode")
    put.add_argument("--append", action="store_true", help="Append to the remote file (APPE)")

    return parser


def apply_overrides(config: ClientConfig, args: argparse.Namespace) -> ClientConfig:
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.timeout is not None:
        config.connect_timeout = args.timeout
    if args.user:
        config.user = args.user
    if args.password:
        config.password = args.password
    if args.log_level:
        config.log_level = args.log_level.upper()
    return config


def run_action(config: ClientConfig, args: argparse.Namespace) -> int:
    """Connect, log in, run one operation and disconnect. Returns the exit code."""
    with FtpClient(transport_factory=config.transport_factory()) as ftp:
        response = ftp.connect(config.host, config.port, config.connect_timeout)
        print(response)
        if not response.is_success:
            return 1

        if config.anonymous:
            response = ftp.login()
        else:
            response = ftp.login(config.user, config.password or "")
        print(response)
        if not response.is_success:
            return 1

        mode = TransferMode.ASCII if getattr(args, "ascii", False) else TransferMode.BINARY
        if args.action == "ls":
            response = ftp.get_directory_listing(args.directory)
            for entry in response.listing:
                print(entry)
        elif args.action == "get":
            response = ftp.download(args.remote_file, args.local_dir, mode)
        elif args.action == "put":
            response = ftp.upload(args.local_file, args.remote_dir, mode, args.append)
        print(response)
        return 0 if response.is_success else 1


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_overrides(ClientConfig.from_env(), args)
    except ValueError as e:
        parser.error(str(e))
    configure_logging(config.log_level)

    if args.action in (None, "ui"):
        if not verify_dependencies(config):
            logger.error("Dependency verification failed")
            sys.exit(1)
        start_streamlit_client(getattr(args, "bind", "0.0.0.0"), getattr(args, "ui_port", 8501))
        return

    sys.exit(run_action(config, args))


def ui_main():
    main(["ui"] + sys.argv[1:])


if __name__ == '__main__':
    main()
