"""Logging setup shared by the app and the maintenance scripts."""
import logging
import sys

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stdout handler to the package logger."""
    global _configured
    logger = logging.getLogger("klutterbox")
    logger.setLevel(_LEVELS.get(str(level).upper().strip(), logging.INFO))
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    _configured = True
