from __future__ import annotations

import argparse
import logging

import uvicorn

from office_dashboard.config import configure_logging, settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="office-dashboard")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args(argv)

    configure_logging()
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(
        "office_dashboard.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
