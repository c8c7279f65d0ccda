from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.dialects import postgresql
from sqlmodel import Field, Session, SQLModel, create_engine

from pg_histogram import SQLAlchemyConnection

TEST_DATABASE_URL = "sqlite://"


class Measurement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sensor: str
    value: Optional[float] = None


class RecordingConnection(SQLAlchemyConnection):
    """PostgreSQL-flavoured connection that records statements instead of running them."""

    def __init__(self, rows=None, adapter_name=None, error=None):
        super().__init__(bind=None, adapter_name=adapter_name)
        self.rows = rows or []
        self.error = error
        self.statements = []

    @property
    def dialect(self):
        return postgresql.dialect()

    def execute(self, sql):
        self.statements.append(sql)
        if self.error is not None:
            raise self.error
        return list(self.rows)


def squish(sql: str) -> str:
    return " ".join(sql.split())


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(TEST_DATABASE_URL)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        for value in (1.0, 2.0, 3.0, 4.0, 100.0, None):
            session.add(Measurement(sensor="thermo", value=value))
        session.add(Measurement(sensor="baro", value=1013.0))
        session.commit()
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def example_rows():
    """Rows PostgreSQL returns for values [1, 2, 3, 4, 100] in 5 bins."""
    return [
        {
            "id": 1,
            "size": 4,
            "inf": Decimal("1"),
            "sup": Decimal("20.8"),
            "min": Decimal("1"),
            "max": Decimal("4"),
        },
        {
            "id": 5,
            "size": 1,
            "inf": Decimal("80.2"),
            "sup": Decimal("100"),
            "min": Decimal("100"),
            "max": Decimal("100"),
        },
    ]


@pytest.fixture
def pg_connection(example_rows):
    return RecordingConnection(rows=example_rows)
