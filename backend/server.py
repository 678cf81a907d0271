from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence

import uvicorn
from dotenv import load_dotenv

# Load .env from backend dir (where server.py runs) before settings are read.
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))

from app.config import load_settings  # noqa: E402

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="State relay server.")
    parser.add_argument("--host", default=settings.host, help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind.")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=settings.log_level)
    logger.info(
        "Starting relay on %s:%s (endpoint=%s capacity=%d silent=%s storage=%s)",
        args.host,
        args.port,
        settings.endpoint_path,
        settings.max_session_capacity,
        settings.silent_rejections,
        settings.storage_dir or "memory",
    )
    uvicorn.run("app.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
