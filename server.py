from __future__ import annotations

import os

import uvicorn
from starlette.applications import Starlette

from auth.errors import ConfigurationError
from codeflow.app import create_app as build_app
from codeflow.config import OAuthConfig, load_config
from codeflow.constants import APP_VERSION, LOGGER
from codeflow.env import env_int, load_env, setup_logging


def create_app() -> Starlette:
    load_env()
    debug_enabled = setup_logging()
    config: OAuthConfig = load_config()
    LOGGER.info("Starting codeflow %s", APP_VERSION)
    return build_app(config, debug_enabled=debug_enabled)


def main() -> None:
    host = os.getenv("APP_HOST", "127.0.0.1")
    try:
        port = env_int("APP_PORT", 8000)
        app = create_app()
    except (ConfigurationError, ValueError) as error:
        LOGGER.error("Refusing to start: %s", error)
        raise SystemExit(1) from error
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
