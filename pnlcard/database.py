from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pnlcard.config import get_settings


def _connect_args(database_url: str) -> dict:
    # Feed ticks and threadpool endpoints share the SQLite file across threads
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


database_url = get_settings().database_url
engine = create_engine(database_url, connect_args=_connect_args(database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a card store session for one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
