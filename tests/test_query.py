from conftest import Measurement
from sqlmodel import select

from pg_histogram import HistogramQuery, HistogramRequest, SQLDataset


def build(connection, bins_count=5, **bounds) -> HistogramQuery:
    request = HistogramRequest(
        dataset=select(Measurement).where(Measurement.sensor == "thermo"),
        field=Measurement.value,
        bins_count=bins_count,
        **bounds,
    )
    return HistogramQuery(request, connection)


class TestHistogramQuery:
    """Construction of the histogram statement"""

    def test_three_stages(self, pg_connection):
        sql = build(pg_connection).to_sql()

        assert sql.startswith('WITH "subquery" AS (')
        assert '"min_max" AS (' in sql
        assert '"histogram" AS (' in sql
        assert sql.endswith('ORDER BY "histogram"."bin"')

    def test_subquery_projects_the_field(self, pg_connection):
        sql = build(pg_connection).to_sql()

        assert "measurement.value AS numeric_value" in sql
        assert "measurement.sensor = 'thermo'" in sql

    def test_bins_count_is_an_integer_literal(self, pg_connection):
        sql = build(pg_connection, bins_count=7).to_sql()

        assert '"min_max"."max_numeric_value", 7 )' in sql
        assert "THEN 7 ELSE" in sql
        assert '"min_max"."min_numeric_value") / 7)' in sql

    def test_computed_bounds_scan_the_subquery(self, pg_connection):
        sql = build(pg_connection).to_sql()

        assert (
            'CAST(min("subquery"."numeric_value") AS numeric) AS "min_numeric_value"'
            in sql
        )
        assert (
            'CAST(max("subquery"."numeric_value") AS numeric) AS "max_numeric_value"'
            in sql
        )

    def test_single_bound_still_computes_both(self, pg_connection):
        sql = build(pg_connection, max=100).to_sql()

        assert 'min("subquery"."numeric_value")' in sql
        assert 'max("subquery"."numeric_value")' in sql
        assert "100.0" not in sql

    def test_explicit_bounds_are_literals(self, pg_connection):
        sql = build(pg_connection, min=0, max=100).to_sql()

        assert (
            '"min_max" AS ( SELECT CAST(0.0 AS numeric) AS "min_numeric_value", '
            'CAST(100.0 AS numeric) AS "max_numeric_value" )'
        ) in sql
        assert 'FROM "subquery" WHERE' not in sql

    def test_upper_bound_goes_to_last_bin(self, pg_connection):
        sql = build(pg_connection, bins_count=3).to_sql()

        assert (
            'CASE WHEN "subquery"."numeric_value"::numeric = "min_max"."max_numeric_value" '
            "THEN 3 ELSE width_bucket("
        ) in sql

    def test_null_values_are_excluded(self, pg_connection):
        sql = build(pg_connection).to_sql()

        assert 'WHERE "subquery"."numeric_value" IS NOT NULL GROUP BY "bin"' in sql

    def test_result_columns(self, pg_connection):
        sql = build(pg_connection).to_sql()

        for column in ("id", "size", "inf", "sup", "min", "max"):
            assert f'AS "{column}"' in sql

    def test_sql_is_memoized(self, pg_connection):
        query = build(pg_connection)

        first = query.to_sql()
        query.request.bins_count = 99

        assert query.to_sql() is first

    def test_raw_sql_dataset(self, pg_connection):
        request = HistogramRequest(
            dataset=SQLDataset("SELECT price FROM items"), field="price", bins_count=4
        )

        sql = HistogramQuery(request, pg_connection).to_sql()

        assert (
            '"subquery" AS ( SELECT "price" AS "numeric_value" '
            'FROM (SELECT price FROM items) AS "dataset" )'
        ) in sql
