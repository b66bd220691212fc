from __future__ import annotations

import os

import structlog

from services.api.app.db.database import get_engine
from services.api.app.db.models import Base

logger = structlog.get_logger(__name__)


def auto_create_enabled() -> bool:
    raw = os.getenv("STOREFRONT_DB_AUTO_CREATE", "true")
    return raw.strip().lower() in {"1", "true", "yes", "y"}


def init_db() -> None:
    """Create missing tables. Existing tables are left as they are."""

    if not auto_create_enabled():
        return

    engine = get_engine()
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(database)), exist_ok=True)

    Base.metadata.create_all(bind=engine)
    logger.debug("Schema ensured", backend=engine.url.get_backend_name())
