from functools import lru_cache
from typing import Iterator

from sqlmodel import create_engine, Session
import os

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/printshop")


@lru_cache(maxsize=None)
def get_engine():
    echo = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
    return create_engine(DATABASE_URL, echo=echo)


def get_session() -> Session:
    engine = get_engine()
    return Session(engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, always closed afterwards."""
    session = get_session()
    try:
        yield session
    finally:
        session.close()
