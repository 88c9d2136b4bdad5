from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import HTTP_LOGGER, LOGGER

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def env_flag(key: str, default: bool) -> bool:
    """Read an on/off variable; anything outside the known spellings is an error."""
    raw = os.getenv(key, "").strip().lower()
    if not raw:
        return default
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be one of 1/0, true/false, yes/no, on/off.")


def env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer value.") from None


def load_env() -> None:
    # Values already in the process environment win over the file.
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def setup_logging() -> bool:
    debug_enabled = env_flag("APP_DEBUG", True)
    level = logging.INFO if debug_enabled else logging.WARNING
    logging.basicConfig(level=level)
    LOGGER.setLevel(level)
    HTTP_LOGGER.setLevel(level)
    return debug_enabled
