"""Maintenance tasks and the alerts derived from them."""
from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MaintenanceTask(BaseModel):
    """A scheduled maintenance task for a home."""

    id: str
    title: str
    category: str = Field(description="Free-text category, e.g. 'HVAC' or 'Water Heater'")
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    cost: float | None = Field(default=None, ge=0)
    labels: list[str] = Field(default_factory=list)


class AlertSystem(str, Enum):
    """System buckets used for alert impact scoring."""

    HVAC = "hvac"
    WATER = "water"
    ROOF = "roof"
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    APPLIANCES = "appliances"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertActionType(str, Enum):
    DIAGNOSE = "diagnose"
    DIY = "diy"
    BOOK_PRO = "book_pro"


class AlertAction(BaseModel):
    type: AlertActionType
    label: str
    duration: str | None = None
    cost: float | None = None


class Alert(BaseModel):
    """A ranked, user-facing maintenance alert."""

    id: str
    title: str
    severity: AlertSeverity
    score: int = Field(ge=0, le=100)
    consequence: str
    deadline: date
    cost: float | None = None
    system: AlertSystem
    actions: list[AlertAction] = Field(default_factory=list)
    source: str = "maintenance"


class AlertConfig(BaseModel):
    """Weights of the composite alert score."""

    deadline_weight: float = Field(default=0.3, ge=0.0)
    impact_weight: float = Field(default=0.25, ge=0.0)
    failure_weight: float = Field(default=0.2, ge=0.0)
    energy_weight: float = Field(default=0.15, ge=0.0)
    safety_weight: float = Field(default=0.1, ge=0.0)
