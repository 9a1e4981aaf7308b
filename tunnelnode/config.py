"""Settings loaded from the environment and an optional .env file."""

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .client import API_BASE_URL, DEFAULT_TIMEOUT
from .errors import ConfigError
from .poller import POLL_ATTEMPTS, POLL_INTERVAL

DEFAULT_ROLE_LABEL = "hp_instance"
DEFAULT_IMAGE = "linode/debian9"
DEFAULT_SCRIPT = "freedom_node"


@dataclass(frozen=True)
class Settings:
    token: str | None = None
    api_url: str = API_BASE_URL
    role_label: str = DEFAULT_ROLE_LABEL
    image: str = DEFAULT_IMAGE
    script_label: str = DEFAULT_SCRIPT
    poll_interval: float = POLL_INTERVAL
    poll_attempts: int = POLL_ATTEMPTS
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"Invalid value for {name}: '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got '{raw}'")
    return value


def load_settings(*, dotenv: bool = True) -> Settings:
    """Build settings from TUNNELNODE_* environment variables.

    :param dotenv: Load a .env file from the working directory first
    :raises ConfigError: If a numeric variable is not a positive number
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    return Settings(
        token=os.getenv("TUNNELNODE_TOKEN") or None,
        api_url=os.getenv("TUNNELNODE_API_URL", API_BASE_URL),
        role_label=os.getenv("TUNNELNODE_ROLE_LABEL", DEFAULT_ROLE_LABEL),
        image=os.getenv("TUNNELNODE_IMAGE", DEFAULT_IMAGE),
        script_label=os.getenv("TUNNELNODE_SCRIPT", DEFAULT_SCRIPT),
        poll_interval=_number("TUNNELNODE_POLL_INTERVAL", POLL_INTERVAL, float),
        poll_attempts=_number("TUNNELNODE_POLL_ATTEMPTS", POLL_ATTEMPTS, int),
        timeout=_number("TUNNELNODE_TIMEOUT", DEFAULT_TIMEOUT, float),
        log_level=os.getenv("TUNNELNODE_LOG_LEVEL", "INFO"),
    )
