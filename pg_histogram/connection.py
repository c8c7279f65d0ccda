import logging
from typing import Any, List, Mapping, Optional, Protocol, Union, runtime_checkable

from sqlalchemy import literal
from sqlalchemy.engine import Connection, Dialect, Engine
from sqlalchemy.orm import Session

from pg_histogram.exceptions import UnsupportedAdapterError

logger = logging.getLogger(__name__)

SUPPORTED_ADAPTERS = ("postgis", "postgresql")


@runtime_checkable
class HistogramConnection(Protocol):
    """What a histogram needs from a database connection."""

    @property
    def adapter_name(self) -> Optional[str]: ...

    @property
    def dialect(self) -> Dialect: ...

    def execute(self, sql: str) -> List[Mapping[str, Any]]: ...

    def quote(self, value: Any) -> str: ...

    def quote_identifier(self, name: str) -> str: ...


class SQLAlchemyConnection:
    """HistogramConnection over a SQLAlchemy / SQLModel session, connection or engine.

    The bind is only borrowed: sessions and connections are never committed or
    closed, engines are checked out for a single statement.
    """

    def __init__(
        self,
        bind: Union[Session, Connection, Engine],
        adapter_name: Optional[str] = None,
    ):
        self.bind = bind
        self._adapter_name = adapter_name

    @property
    def dialect(self) -> Dialect:
        if isinstance(self.bind, Session):
            return self.bind.get_bind().dialect
        return self.bind.dialect

    @property
    def adapter_name(self) -> Optional[str]:
        return self._adapter_name or self.dialect.name

    def execute(self, sql: str) -> List[Mapping[str, Any]]:
        """Run a complete statement and return its rows keyed by column name."""
        if isinstance(self.bind, Engine):
            with self.bind.connect() as connection:
                return self._execute(connection, sql)
        if isinstance(self.bind, Session):
            return self._execute(self.bind.connection(), sql)
        return self._execute(self.bind, sql)

    @staticmethod
    def _execute(connection: Connection, sql: str) -> List[Mapping[str, Any]]:
        # driver SQL: no bind parameter parsing, so "::" casts and colons in
        # literals reach the database as written
        result = connection.exec_driver_sql(sql)
        return list(result.mappings().all())

    def quote(self, value: Any) -> str:
        if value is None:
            return "NULL"
        compiled = literal(value).compile(
            dialect=self.dialect, compile_kwargs={"literal_binds": True}
        )
        return str(compiled)

    def quote_identifier(self, name: str) -> str:
        return self.dialect.identifier_preparer.quote_identifier(name)


def as_connection(obj: Any) -> HistogramConnection:
    if isinstance(obj, (Session, Connection, Engine)):
        return SQLAlchemyConnection(obj)
    if isinstance(obj, HistogramConnection):
        return obj
    raise TypeError(
        f"Expected a SQLAlchemy session, connection or engine, got {type(obj).__name__}"
    )


def assert_supported(connection: HistogramConnection) -> None:
    """Reject connections whose adapter has no width_bucket primitive."""
    adapter = connection.adapter_name
    if adapter not in SUPPORTED_ADAPTERS:
        logger.debug(f"Rejecting histogram connection with adapter {adapter!r}")
        raise UnsupportedAdapterError(adapter, SUPPORTED_ADAPTERS)
