"""doubanmeta entry point.

Command-line flags override the environment settings in
:mod:`doubanmeta.config`; the FastAPI app is then served with uvicorn.
"""

import argparse
import logging

import uvicorn

from doubanmeta import config
from doubanmeta.web.app import create_app

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="JSON API for douban movie and book metadata")
    parser.add_argument("--host", default=config.HOST, help="Listen address")
    parser.add_argument("--port", type=int, default=config.PORT, help="Listen port")
    parser.add_argument(
        "--limit",
        type=int,
        default=config.SEARCH_LIMIT,
        help="Default number of movie search results",
    )
    parser.add_argument("--cookie", default=config.DOUBAN_COOKIE, help="douban.com cookie string")
    parser.add_argument("--debug", action="store_true", default=config.DEBUG, help="Verbose logging")
    return parser.parse_args(argv)


def apply_args(args: argparse.Namespace) -> None:
    """Push command-line overrides into the config module before the app is built."""
    config.HOST = args.host
    config.PORT = args.port
    config.SEARCH_LIMIT = args.limit if args.limit > 0 else config.DEFAULT_SEARCH_LIMIT
    config.DOUBAN_COOKIE = args.cookie
    config.DEBUG = args.debug


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    apply_args(args)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if config.DEBUG else logging.INFO,
    )

    logger.info("Listening on %s:%d", config.HOST, config.PORT)
    uvicorn.run(create_app(), host=config.HOST, port=config.PORT, log_level="info")


if __name__ == "__main__":
    main()
