"""Process configuration read from the environment."""

import logging
import os

from werewolf.rules import PHASE_DURATION_SECONDS

# Env var names
ENV_PHASE_SECONDS = "WEREWOLF_PHASE_SECONDS"
ENV_STORE_RETRIES = "WEREWOLF_STORE_RETRIES"
ENV_LOG_LEVEL = "WEREWOLF_LOG_LEVEL"
ENV_CORS_ORIGINS = "WEREWOLF_CORS_ORIGINS"

DEFAULT_STORE_RETRIES = 3


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring %s=%r: not an integer", name, raw)
        return default


def phase_seconds() -> int:
    """Default phase length for new games."""
    return _int_env(ENV_PHASE_SECONDS, PHASE_DURATION_SECONDS)


def store_retries() -> int:
    """How many conflicting writes a resolution retries before giving up."""
    return max(1, _int_env(ENV_STORE_RETRIES, DEFAULT_STORE_RETRIES))


def cors_origins() -> list[str]:
    raw = os.environ.get(ENV_CORS_ORIGINS, "*")
    return [o.strip() for o in raw.split(",") if o.strip()]


def configure_logging() -> None:
    level = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
