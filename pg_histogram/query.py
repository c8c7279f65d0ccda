import logging
from typing import Optional

from pg_histogram.connection import HistogramConnection
from pg_histogram.dataset import as_dataset
from pg_histogram.models import HistogramRequest

logger = logging.getLogger(__name__)


def _squish(sql: str) -> str:
    return " ".join(sql.split())


NUMERIC_VALUE_ALIAS = "numeric_value"

# A value equal to the upper bound goes to the last bucket; width_bucket alone
# would put it in the overflow bucket bins_count + 1.
SQL_FOR_HISTOGRAM = _squish(
    """
    WITH
      "subquery" AS (
        {sql_for_subquery}
      ),
      "min_max" AS (
        {sql_for_min_max}
      ),
      "histogram" AS (
        SELECT
          CASE
            WHEN "subquery"."numeric_value"::numeric = "min_max"."max_numeric_value"
              THEN {bins_count}
            ELSE width_bucket(
              "subquery"."numeric_value"::numeric,
              "min_max"."min_numeric_value",
              "min_max"."max_numeric_value",
              {bins_count}
            )
          END AS "bin",
          count("subquery"."numeric_value")::bigint AS "frequency",
          min("subquery"."numeric_value")::numeric AS "min_numeric_value",
          max("subquery"."numeric_value")::numeric AS "max_numeric_value"
        FROM
          "min_max",
          "subquery"
        WHERE
          "subquery"."numeric_value" IS NOT NULL
        GROUP BY
          "bin"
      )
    SELECT
      "histogram"."bin" AS "id",
      "histogram"."frequency" AS "size",
      ("min_max"."min_numeric_value" + ((("min_max"."max_numeric_value" - "min_max"."min_numeric_value") / {bins_count}) * ("histogram"."bin" - 1))) AS "inf",
      ("min_max"."min_numeric_value" + ((("min_max"."max_numeric_value" - "min_max"."min_numeric_value") / {bins_count}) * "histogram"."bin")) AS "sup",
      "histogram"."min_numeric_value" AS "min",
      "histogram"."max_numeric_value" AS "max"
    FROM
      "histogram",
      "min_max"
    ORDER BY
      "histogram"."bin"
    """
)

# Explicit bounds: no scan of the dataset.
SQL_FOR_MIN_MAX = _squish(
    """
    SELECT
      CAST({sql_for_min_numeric_value} AS numeric) AS "min_numeric_value",
      CAST({sql_for_max_numeric_value} AS numeric) AS "max_numeric_value"
    """
)

SQL_FOR_MIN_MAX_AS_SUBQUERY = _squish(
    """
    SELECT
      CAST(min("subquery"."numeric_value") AS numeric) AS "min_numeric_value",
      CAST(max("subquery"."numeric_value") AS numeric) AS "max_numeric_value"
    FROM
      "subquery"
    WHERE
      "subquery"."numeric_value" IS NOT NULL
    """
)


class HistogramQuery:
    """Builds the PostgreSQL statement for one histogram request.

    The statement is built on first use and reused afterwards.
    """

    def __init__(self, request: HistogramRequest, connection: HistogramConnection):
        self.request = request
        self.connection = connection
        self._sql: Optional[str] = None

    def to_sql(self) -> str:
        if self._sql is None:
            self._sql = SQL_FOR_HISTOGRAM.format(
                sql_for_subquery=self._sql_for_subquery(),
                sql_for_min_max=self._sql_for_min_max(),
                bins_count=self.request.bins_count,
            )
            logger.debug(f"Built histogram statement: {self._sql}")
        return self._sql

    def _sql_for_subquery(self) -> str:
        dataset = as_dataset(self.request.dataset)
        projected = dataset.select(self.request.field, NUMERIC_VALUE_ALIAS)
        return projected.to_sql(self.connection.dialect)

    def _sql_for_min_max(self) -> str:
        if not self.request.has_explicit_bounds:
            return SQL_FOR_MIN_MAX_AS_SUBQUERY
        return SQL_FOR_MIN_MAX.format(
            sql_for_min_numeric_value=self.connection.quote(self.request.min),
            sql_for_max_numeric_value=self.connection.quote(self.request.max),
        )
