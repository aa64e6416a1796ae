import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "openai")


class _DeskHandler(logging.StreamHandler):
    """Marker so repeated setup calls leave a single stdout handler."""


def setup_logging(level: int | str = logging.INFO) -> None:
    """Send application logs to stdout; safe to call more than once."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if any(isinstance(handler, _DeskHandler) for handler in root_logger.handlers):
        return

    handler = _DeskHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
