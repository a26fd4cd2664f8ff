"""Time interval and slot models for availability computation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TimeInterval(BaseModel):
    """Half-open time range [start, end) with timezone-aware bounds."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "TimeInterval":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Interval bounds must be timezone-aware")
        if self.start >= self.end:
            raise ValueError("Interval start must be before its end")
        return self

    def overlaps(self, other: "TimeInterval") -> bool:
        """Open-interval overlap test; touching intervals do not overlap."""
        return self.start < other.end and self.end > other.start


class AvailableSlot(BaseModel):
    """Bookable slot offered to the client."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "label": "10:00",
                "value": "10:00",
                "start": "2026-01-15T10:00:00+03:00",
                "end": "2026-01-15T11:00:00+03:00",
            }
        },
    )

    label: str = Field(..., description="Human-readable start time, HH:MM")
    value: str = Field(..., description="Machine-readable start time, HH:MM")
    start: datetime
    end: datetime
