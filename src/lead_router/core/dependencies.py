"""
Shared dependencies for FastAPI routes
"""
from typing import Generator
from sqlalchemy.orm import Session

from lead_router.database.session import get_session


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Yields a database session from the pool and ensures it's closed after use.
    """
    db = get_session()
    try:
        yield db
    finally:
        db.close()
