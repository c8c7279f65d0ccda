import logging
from typing import Any, List, Optional

from pg_histogram.connection import as_connection, assert_supported
from pg_histogram.mapper import fetch_bins
from pg_histogram.models import Bin, HistogramRequest
from pg_histogram.query import HistogramQuery

logger = logging.getLogger(__name__)


class HistogramRelation:
    """A histogram over one numeric field of a dataset.

    The connection's adapter is checked on construction, before any SQL is
    built. The statement and the bins are computed once per relation.

    Args:
        dataset: A ``Select``, a raw SQL subquery or any ``Dataset``.
        field: The numeric column or expression to bin.
        bins_count: The number of equal-width bins.
        connection: A SQLAlchemy session, connection or engine, or any
            ``HistogramConnection``.
        min: Lower bound of the histogram range (computed if omitted).
        max: Upper bound of the histogram range (computed if omitted).

    With explicit bounds, values below ``min`` or above ``max`` come back in
    bin 0 or bin ``bins_count + 1``; those bins can lie partly outside their
    own ``inf``/``sup``.

    Raises:
        UnsupportedAdapterError: If the connection is neither PostgreSQL nor PostGIS.
        InvalidBinsCountError: If ``bins_count`` is not a positive integer.
        InvalidBoundsError: If the bounds are not numeric or ``min >= max``.
    """

    def __init__(
        self,
        dataset: Any,
        field: Any,
        bins_count: int,
        connection: Any,
        min: Optional[float] = None,
        max: Optional[float] = None,
    ):
        self.connection = as_connection(connection)
        assert_supported(self.connection)

        self.request = HistogramRequest(
            dataset=dataset, field=field, bins_count=bins_count, min=min, max=max
        )
        self.query = HistogramQuery(self.request, self.connection)
        self._bins: Optional[List[Bin]] = None

    @property
    def dataset(self) -> Any:
        return self.request.dataset

    @property
    def field(self) -> Any:
        return self.request.field

    @property
    def bins_count(self) -> int:
        return self.request.bins_count

    def to_sql(self) -> str:
        return self.query.to_sql()

    @property
    def bins(self) -> List[Bin]:
        """The non-empty bins, ordered by id."""
        if self._bins is None:
            logger.debug(
                f"Computing histogram with {self.bins_count} bins "
                f"on {self.connection.adapter_name}"
            )
            self._bins = fetch_bins(self.connection, self.to_sql())
        return self._bins
