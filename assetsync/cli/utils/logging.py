import logging
import sys


logger = logging.getLogger("assetsync")

# Loggers that only speak up in debug mode
_DEBUG_ONLY_LOGGERS = ("dulwich", "filelock")

_handler = None


def configure_logging(debug: bool):
    """
    Configures the assetsync logger for CLI use.

    The handler is rebuilt on every call so it writes to the current
    sys.stdout. In debug mode dulwich's protocol chatter and lock diagnostics
    are shown too.
    """
    global _handler

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    for name in ("assetsync",) + _DEBUG_ONLY_LOGGERS:
        if _handler is not None:
            logging.getLogger(name).removeHandler(_handler)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.addHandler(handler)

    for name in _DEBUG_ONLY_LOGGERS:
        other = logging.getLogger(name)
        other.setLevel(logging.DEBUG if debug else logging.WARNING)
        if debug:
            other.addHandler(handler)

    _handler = handler
