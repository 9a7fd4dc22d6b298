import logging
import sys

from .database import LOG_LEVEL

logger = logging.getLogger("aceplan")


def setup_logging(level: str = LOG_LEVEL):
    """
    Configures the root logger for the application.
    Call once at startup, tests rely on pytest's caplog instead.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )
    # SQLAlchemy logs every statement at INFO when echo is on
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
