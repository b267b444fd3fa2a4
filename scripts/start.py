"""Standalone startup script for the SparkLab Lab Report API.

Reads the listening address from settings (``PORT`` / ``API_HOST``,
falling back to 0.0.0.0:4000) and replaces this process with uvicorn.
"""

import os
import signal
import sys

from api.config import get_settings


def build_command() -> list[str]:
    """uvicorn command line for the configured host and port."""
    settings = get_settings()
    workers = os.getenv("API_WORKERS", "1")
    return [
        "uvicorn",
        "api.main:app",
        "--host",
        settings.api_host,
        "--port",
        str(settings.api_port),
        "--workers",
        workers,
        "--proxy-headers",
        "--forwarded-allow-ips",
        "*",
    ]


def signal_handler(signum: int, _frame: object) -> None:
    """Handle shutdown signals gracefully."""
    print(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    command = build_command()
    print(f"Starting lab report server on {command[3]}:{command[5]}...")
    os.execvp(command[0], command)


if __name__ == "__main__":
    main()
