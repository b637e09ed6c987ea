from __future__ import annotations

import argparse
import os
from typing import List, Optional

import uvicorn

from ..protocol.http.app import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the chess rules HTTP API")
    parser.add_argument(
        "--host",
        default=os.environ.get("CHESSRULES_HOST", "0.0.0.0"),
        help="Bind address (env: CHESSRULES_HOST, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("CHESSRULES_PORT", "8000")),
        help="Port (env: CHESSRULES_PORT, default: 8000)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CHESSRULES_LOG_LEVEL", "info").lower(),
        choices=["critical", "error", "warning", "info", "debug"],
        help="Log level (env: CHESSRULES_LOG_LEVEL, default: info)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    app = create_app(log_level=args.log_level.upper())
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
