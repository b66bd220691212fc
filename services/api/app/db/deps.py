from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from services.api.app.db.database import db_session


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session. Work a failed request left uncommitted is rolled back."""

    db = db_session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
