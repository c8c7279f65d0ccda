import logging
from typing import List

from pg_histogram.connection import HistogramConnection
from pg_histogram.models import Bin

logger = logging.getLogger(__name__)


def fetch_bins(connection: HistogramConnection, sql: str) -> List[Bin]:
    """Execute a histogram statement and map every row to a Bin.

    Rows come back ordered by bucket id. Empty buckets never appear because the
    statement groups by bucket.
    """
    rows = connection.execute(sql)
    bins = [Bin.from_row(row) for row in rows]
    logger.debug(f"Fetched {len(bins)} non-empty histogram bins")
    return bins
