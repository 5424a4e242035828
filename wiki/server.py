"""
Command line entry point, runs the wiki with uvicorn.
"""

import argparse
import logging
import os

import fastapi
import uvicorn

from wiki.api import create_app
from wiki.config import Config
from wiki.setup import setup_logging

logger = logging.getLogger(__name__)


def create_app_from_env() -> fastapi.FastAPI:
    """
    App factory for uvicorn, also used in reload mode.

    The configuration file comes from WIKI_CONFIG, `config.yaml` by default.
    """
    config_path = os.environ.get("WIKI_CONFIG", "config.yaml")
    config = Config.read(config_path)
    setup_logging(logging.DEBUG if config.debug else logging.INFO)
    logger.info("Serving wiki from config=%s database=%s", config_path, config.database)
    return create_app(config)


def parse_args():
    """
    Parse the arguments.
    """
    parser = argparse.ArgumentParser(description="Serve the wiki.")
    parser.add_argument(
        "--config",
        help="Path to the config file",
        default=os.environ.get("WIKI_CONFIG", "config.yaml"),
    )
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload on file changes"
    )
    parser.add_argument("--log-level", default=None, help="Log level")
    return parser.parse_args()


def main():
    opts = parse_args()
    config = Config.read(opts.config)
    os.environ["WIKI_CONFIG"] = opts.config

    uvicorn.run(
        "wiki.server:create_app_from_env",
        factory=True,
        host=opts.host or config.server.host,
        port=opts.port or config.server.port,
        reload=opts.reload or config.server.reload,
        log_level=opts.log_level or config.server.log_level,
    )


if __name__ == "__main__":
    main()
