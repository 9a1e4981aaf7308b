"""Shared utility functions: logging setup and the structured event sink."""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("tunnelnode")


class EventLog:
    """Structured event sink handed to each component.

    Wraps a ``logging.Logger`` and renders keyword fields as ``key='value'``
    pairs after the message, so callers never reach for a module-level
    logger and tests can capture events with ``caplog``.
    """

    def __init__(self, target: logging.Logger | None = None) -> None:
        self.logger = target or logger

    def _emit(self, level: int, msg: str, fields: dict) -> None:
        if fields:
            rendered = " ".join(f"{k}={v!r}" for k, v in fields.items())
            msg = f"{msg} [{rendered}]"
        self.logger.log(level, msg, extra={"fields": fields})

    def debug(self, msg: str, **fields) -> None:
        self._emit(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields) -> None:
        self._emit(logging.INFO, msg, fields)

    def warn(self, msg: str, **fields) -> None:
        self._emit(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields) -> None:
        self._emit(logging.ERROR, msg, fields)

    def instance(self, instance: dict, msg: str, **extra) -> None:
        """Log a provider instance snapshot at debug level."""
        fields = {
            "id": instance.get("id"),
            "label": instance.get("label"),
            "region": instance.get("region"),
            "plan": instance.get("type"),
            "image": instance.get("image"),
            "status": instance.get("status"),
            "ipv4": instance.get("ipv4"),
            "ipv6": instance.get("ipv6"),
            "created": instance.get("created"),
            "hypervisor": instance.get("hypervisor"),
        }
        fields.update(extra)
        self.debug(msg, **fields)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Set up logging with Rich handler to stderr."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    rich_handler = RichHandler(
        console=Console(stderr=True),
        log_time_format="[%X]",
        show_path=False,
        markup=False,
    )
    rich_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.addHandler(rich_handler)

    for name, lvl in [
        ("httpx", logging.WARNING),
        ("httpcore", logging.WARNING),
    ]:
        lg = logging.getLogger(name)
        for h in lg.handlers[:]:
            lg.removeHandler(h)
        lg.setLevel(lvl)
        lg.propagate = True


def log(msg: str) -> None:
    """Log info message."""
    logger.info(msg)


def error(msg: str) -> None:
    """Log error message and exit."""
    logger.error(msg)
    sys.exit(1)
