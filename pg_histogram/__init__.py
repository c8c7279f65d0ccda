from typing import Any, List, Optional

from .connection import (
    SUPPORTED_ADAPTERS,
    HistogramConnection,
    SQLAlchemyConnection,
    as_connection,
    assert_supported,
)
from .dataset import Dataset, SelectDataset, SQLDataset, as_dataset
from .exceptions import (
    HistogramException,
    InvalidBinsCountError,
    InvalidBoundsError,
    MappingError,
    QueryExecutionError,
    UnsupportedAdapterError,
)
from .mapper import fetch_bins
from .models import Bin, HistogramRequest
from .query import HistogramQuery
from .relation import HistogramRelation


def histogram_for(
    dataset: Any,
    field: Any,
    bins_count: int,
    connection: Any,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> List[Bin]:
    """Run a histogram query and return its non-empty bins."""
    return HistogramRelation(
        dataset, field, bins_count, connection, min=min, max=max
    ).bins
