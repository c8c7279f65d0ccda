from typing import Any, Optional, Protocol, Tuple, Union, runtime_checkable

from sqlalchemy import Select
from sqlalchemy.engine import Dialect, default
from sqlalchemy.sql.elements import ColumnElement


@runtime_checkable
class Dataset(Protocol):
    """A filtered row source that can be used as a sub-select."""

    def select(self, field: Any, alias: str) -> "Dataset": ...

    def to_sql(self, dialect: Optional[Dialect] = None) -> str: ...


class SelectDataset:
    """Dataset backed by a SQLAlchemy (or SQLModel) ``Select``."""

    def __init__(self, statement: Select):
        self.statement = statement

    def select(self, field: Union[str, ColumnElement], alias: str) -> "SelectDataset":
        """Project the statement down to ``field`` labelled ``alias``.

        FROM, WHERE, JOIN and the other clauses of the statement are kept.
        """
        column = self._resolve(field)
        statement = self.statement.with_only_columns(
            column.label(alias), maintain_column_froms=True
        )
        return SelectDataset(statement)

    def _resolve(self, field: Union[str, ColumnElement]) -> ColumnElement:
        if isinstance(field, str):
            try:
                return self.statement.selected_columns[field]
            except KeyError:
                raise ValueError(
                    f"Column '{field}' is not selected by the dataset statement"
                ) from None
        if not isinstance(field, ColumnElement):
            # ORM attributes expose their column through __clause_element__
            clause = getattr(field, "__clause_element__", None)
            if clause is None:
                raise TypeError(
                    f"Cannot bin {type(field).__name__}; expected a column expression"
                )
            return clause()
        return field

    def to_sql(self, dialect: Optional[Dialect] = None) -> str:
        compiled = self.statement.compile(
            dialect=dialect, compile_kwargs={"literal_binds": True}
        )
        return str(compiled)


class SQLDataset:
    """Dataset backed by a raw SQL subquery.

    The text is embedded verbatim, so it must already be written for the
    driver that executes it.
    """

    def __init__(self, sql: str, projection: Optional[Tuple[Any, str]] = None):
        self.sql = sql.strip().rstrip(";")
        self.projection = projection

    def select(self, field: Union[str, ColumnElement], alias: str) -> "SQLDataset":
        return SQLDataset(self.sql, projection=(field, alias))

    def to_sql(self, dialect: Optional[Dialect] = None) -> str:
        if self.projection is None:
            return self.sql

        dialect = dialect or default.DefaultDialect()
        preparer = dialect.identifier_preparer
        field, alias = self.projection
        if isinstance(field, str):
            expression = preparer.quote_identifier(field)
        else:
            expression = str(
                field.compile(dialect=dialect, compile_kwargs={"literal_binds": True})
            )
        return (
            f"SELECT {expression} AS {preparer.quote_identifier(alias)} "
            f'FROM ({self.sql}) AS "dataset"'
        )


def as_dataset(obj: Any) -> Dataset:
    if isinstance(obj, Select):
        return SelectDataset(obj)
    if isinstance(obj, str):
        return SQLDataset(obj)
    if isinstance(obj, Dataset):
        return obj
    raise TypeError(
        f"Expected a Select, a SQL string or a Dataset, got {type(obj).__name__}"
    )
