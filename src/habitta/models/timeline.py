"""Capital timeline entries consumed by the Home Outlook aggregator."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class DataQuality(str, Enum):
    """How complete and reliable the input data for a system is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReplacementWindow(BaseModel):
    """Calendar years bracketing the expected replacement."""

    early_year: int
    late_year: int

    @model_validator(mode="after")
    def _ordered(self) -> ReplacementWindow:
        if self.late_year < self.early_year:
            raise ValueError("late_year must not precede early_year")
        return self


class SystemTimelineEntry(BaseModel):
    """One lane of the capital timeline.

    Data quality (how good the inputs are) is kept separate from the width of
    the replacement window (how uncertain the forecast is).
    """

    system_id: str = Field(description="hvac, roof, water_heater, ...")
    install_year: int | None = None
    replacement_window: ReplacementWindow | None = None
    data_quality: DataQuality = DataQuality.LOW
