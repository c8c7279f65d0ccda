import os
from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import Session, create_engine

DATABASE_URL = os.getenv(
    "DATABASE_URL", "postgresql+psycopg2://localhost:5432/postgres"
)

_engine: Optional[Engine] = None

SessionLocal = sessionmaker(class_=Session, autocommit=False, autoflush=False)


def get_engine() -> Engine:
    """Create (once) and return the engine for DATABASE_URL."""
    global _engine

    if _engine is None:
        _engine = create_engine(DATABASE_URL, pool_pre_ping=True)
        SessionLocal.configure(bind=_engine)
    return _engine


def get_session() -> Generator[Session, None, None]:
    get_engine()
    with SessionLocal() as session:
        yield session
