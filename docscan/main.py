"""Entry point for the document scan API server."""

import argparse
from pathlib import Path

import uvicorn

from docscan.api.app import app, configure
from docscan.utils.config import load_config
from docscan.utils.logger import setup_logging


def main(argv: list[str] | None = None) -> None:
    """Start the FastAPI application server.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(description="Document scan API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--config", type=Path, default=None, help="YAML configuration file"
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)
    configure(config)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
