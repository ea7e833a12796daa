"""User decision events attached to a system generation."""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .system import uuid7


class DecisionType(str, Enum):
    """What the homeowner decided to do about a system."""

    REPLACE_NOW = "replace_now"
    DEFER_WITH_DATE = "defer_with_date"
    SCHEDULE_INSPECTION = "schedule_inspection"
    SCHEDULE_MAINTENANCE = "schedule_maintenance"
    NO_ACTION = "no_action"  # Explicit choice, distinct from closing without deciding


class DecisionEvent(BaseModel):
    """Immutable, append-only record of a user decision.

    Tied to the system generation that was current when the decision was
    made, so history survives a replacement reset.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid7()))
    home_id: str
    system_id: str
    generation: int = Field(ge=1)
    decision_type: DecisionType
    assumptions_json: dict[str, Any] = Field(default_factory=dict)
    user_notes: str | None = None
    defer_until: datetime | None = None
    next_review_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _deferral_has_date(self) -> DecisionEvent:
        if self.decision_type == DecisionType.DEFER_WITH_DATE and self.defer_until is None:
            raise ValueError("defer_with_date decisions require defer_until")
        return self
