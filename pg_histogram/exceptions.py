from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import DBAPIError

# Execution errors are raised by the driver and passed through untouched.
QueryExecutionError = DBAPIError


class HistogramException(Exception):
    def __init__(
        self, error_code: str, detail: str, context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(detail)
        self.error_code = error_code
        self.detail = detail
        self.context = context or {}


class UnsupportedAdapterError(HistogramException):
    def __init__(self, adapter: Optional[str], supported: Iterable[str]):
        supported = list(supported)
        super().__init__(
            error_code="UNSUPPORTED_ADAPTER",
            detail=(
                f"Database adapter '{adapter}' is not supported. "
                f"Supported adapters: {', '.join(supported)}"
            ),
            context={"adapter": adapter, "supported": supported},
        )


class InvalidBinsCountError(HistogramException):
    def __init__(self, bins_count: Any):
        super().__init__(
            error_code="INVALID_BINS_COUNT",
            detail=f"bins_count must be a positive integer, got {bins_count!r}",
            context={"bins_count": bins_count},
        )


class InvalidBoundsError(HistogramException):
    def __init__(self, detail: str, min: Any = None, max: Any = None):
        super().__init__(
            error_code="INVALID_BOUNDS",
            detail=detail,
            context={"min": min, "max": max},
        )


class MappingError(HistogramException):
    def __init__(self, detail: str, row_keys: Optional[Iterable[str]] = None):
        super().__init__(
            error_code="MAPPING_ERROR",
            detail=detail,
            context={"columns": sorted(row_keys) if row_keys is not None else []},
        )
