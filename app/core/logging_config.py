"""Process-wide logging setup, called once from ``app.main``."""
import logging
import sys

from app.core.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def setup_logging() -> logging.Logger:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Reloads (uvicorn --reload, test re-imports) must not stack handlers
    if not any(getattr(h, "_mentorbook", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._mentorbook = True
        root.addHandler(handler)

    # SQL echo is controlled by SQL_DEBUG on the engine itself
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_debug else logging.WARNING
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger("app")
