import math
import numbers
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from sqlmodel import SQLModel

from pg_histogram.exceptions import (
    InvalidBinsCountError,
    InvalidBoundsError,
    MappingError,
)

BIN_COLUMNS = ("id", "size", "inf", "sup", "min", "max")


class Bin(BaseModel):
    """A non-empty bucket of a histogram.

    ``inf``/``sup`` are the bucket boundaries derived from the histogram range,
    ``min``/``max`` are the smallest and largest values actually observed in it.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    size: int = Field(ge=1)
    inf: float
    sup: float
    min: float
    max: float

    @property
    def width(self) -> float:
        return self.sup - self.inf

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Bin":
        """Build a bin from a result row, column by column."""
        missing = [column for column in BIN_COLUMNS if column not in row]
        if missing:
            raise MappingError(
                f"Result row is missing column(s): {', '.join(missing)}", row.keys()
            )

        try:
            return cls(**{column: row[column] for column in BIN_COLUMNS})
        except ValidationError as e:
            raise MappingError(
                f"Result row could not be mapped to a bin: {e}", row.keys()
            ) from e


class HistogramRequest(SQLModel):
    dataset: Any
    field: Any
    bins_count: int
    min: Optional[float] = None
    max: Optional[float] = None

    @field_validator("bins_count", mode="before")
    @classmethod
    def validate_bins_count(cls, v: Any) -> int:
        # bool is an Integral too
        if isinstance(v, bool) or not isinstance(v, numbers.Integral) or v <= 0:
            raise InvalidBinsCountError(v)
        return int(v)

    @field_validator("min", "max", mode="before")
    @classmethod
    def validate_bound(cls, v: Any) -> Optional[float]:
        if v is None:
            return v

        if isinstance(v, bool) or not isinstance(v, (numbers.Real, Decimal)):
            raise InvalidBoundsError(f"Histogram bounds must be numeric, got {v!r}")
        if not math.isfinite(float(v)):
            raise InvalidBoundsError(f"Histogram bounds must be finite, got {v!r}")
        return float(v)

    @model_validator(mode="after")
    def validate_range(self) -> "HistogramRequest":
        if self.has_explicit_bounds and self.min >= self.max:
            raise InvalidBoundsError(
                f"Histogram min ({self.min}) must be lower than max ({self.max})",
                min=self.min,
                max=self.max,
            )
        return self

    @property
    def has_explicit_bounds(self) -> bool:
        return self.min is not None and self.max is not None
