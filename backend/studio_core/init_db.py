# backend/studio_core/init_db.py
"""Create every table registered on ``Base.metadata``."""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from studio_core import models  # noqa: F401  registers the tables
from studio_core.database import Base, engine

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    target = bind or engine
    logger.info("Creating database tables on %s", target.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=target)


if __name__ == "__main__":
    init_db()
