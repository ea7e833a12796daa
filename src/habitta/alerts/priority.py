"""Rank pending maintenance tasks into user-facing alerts.

    score = min(100, round(100 × (u·deadline + i·impact + u·failure
                                   + i·energy + s·safety)))

where u is urgency, i is impact and s is safety. Urgency doubles as the
failure-risk signal and impact as the energy-waste signal. Tasks scoring
below the noise floor are not surfaced at all.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from ..lifecycle.outlook import round_half_up
from ..models.task import (
    Alert,
    AlertAction,
    AlertActionType,
    AlertConfig,
    AlertSeverity,
    AlertSystem,
    MaintenanceTask,
    TaskPriority,
    TaskStatus,
)

# Alerts below this score are noise
MIN_ALERT_SCORE = 20
HIGH_SEVERITY_SCORE = 70
MEDIUM_SEVERITY_SCORE = 40

# Category substrings, checked in order
CATEGORY_SYSTEMS: tuple[tuple[str, AlertSystem], ...] = (
    ("hvac", AlertSystem.HVAC),
    ("water heater", AlertSystem.WATER),
    ("plumbing", AlertSystem.PLUMBING),
    ("roof", AlertSystem.ROOF),
    ("electrical", AlertSystem.ELECTRICAL),
    ("appliances", AlertSystem.APPLIANCES),
    ("safety", AlertSystem.ELECTRICAL),
    ("exterior", AlertSystem.ROOF),
    ("interior", AlertSystem.APPLIANCES),
    ("energy efficiency", AlertSystem.HVAC),
    ("landscaping", AlertSystem.ROOF),
)

COST_MULTIPLIERS: dict[AlertSystem, float] = {
    AlertSystem.HVAC: 0.06,
    AlertSystem.WATER: 0.08,
    AlertSystem.ROOF: 0.10,
    AlertSystem.ELECTRICAL: 0.05,
    AlertSystem.PLUMBING: 0.07,
    AlertSystem.APPLIANCES: 0.04,
}

PRIORITY_MULTIPLIERS: dict[TaskPriority, float] = {
    TaskPriority.HIGH: 1.2,
    TaskPriority.MEDIUM: 1.0,
    TaskPriority.LOW: 0.8,
}

SAFETY_KEYWORDS = ("smoke", "detector", "carbon monoxide", "gas", "electrical", "safety")

URGENCY_DECAY_DAYS = 90

# Emergency repairs cost this multiple of the planned price
EMERGENCY_COST_MULTIPLIER = 2.5
EFFICIENCY_GAIN = 0.1
DEFAULT_TASK_COST = 100


@dataclass(frozen=True)
class MoneySavings:
    monthly_savings: int
    avoided_surprise: int


def map_category_to_system(category: str) -> AlertSystem:
    lower = category.lower()
    for key, system in CATEGORY_SYSTEMS:
        if key in lower:
            return system
    return AlertSystem.APPLIANCES


def days_until_due(task: MaintenanceTask, today: date) -> int:
    return (task.due_date - today).days


def urgency_score(days: int) -> float:
    if days <= 0:
        return 1.0
    if days <= 7:
        return 0.8
    if days <= 30:
        return 0.6
    return max(0.0, 1 - days / URGENCY_DECAY_DAYS)


def impact_score(task: MaintenanceTask, system: AlertSystem) -> float:
    return COST_MULTIPLIERS[system] * PRIORITY_MULTIPLIERS[task.priority]


def safety_score(task: MaintenanceTask) -> float:
    haystacks = [task.title, task.category, *task.labels]
    haystacks = [text.lower() for text in haystacks]
    hit = any(keyword in text for keyword in SAFETY_KEYWORDS for text in haystacks)
    return 1.0 if hit else 0.0


def severity_for(score: int) -> AlertSeverity:
    if score >= HIGH_SEVERITY_SCORE:
        return AlertSeverity.HIGH
    if score >= MEDIUM_SEVERITY_SCORE:
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW


def _consequence(task: MaintenanceTask, days: int, urgency: float, impact: float) -> str:
    if days <= 0:
        overdue = abs(days)
        increase = round_half_up(impact * overdue * 100)
        return f"Overdue by {overdue} days, increases repair cost by ~{increase}%."
    if impact > 0.08:
        monthly = round_half_up((task.cost or DEFAULT_TASK_COST) * impact)
        return (
            f"Efficiency down {round_half_up(impact * 100)}%, "
            f"costs ~${monthly}/mo until fixed."
        )
    if urgency > 0.7:
        return f"Due in {days} days, critical for system health."
    return f"Recommended within {days} days, prevents larger issues."


def _actions(task: MaintenanceTask) -> list[AlertAction]:
    actions = [AlertAction(type=AlertActionType.DIAGNOSE, label="Diagnose", duration="5m")]
    if not task.cost or task.cost < 200:
        actions.append(
            AlertAction(
                type=AlertActionType.DIY, label="DIY Guide", duration="30-60m", cost=task.cost
            )
        )
    if task.cost and task.cost > 100:
        actions.append(AlertAction(type=AlertActionType.BOOK_PRO, label="Book Pro", cost=task.cost))
    return actions


def score_task(task: MaintenanceTask, config: AlertConfig, today: date) -> int:
    system = map_category_to_system(task.category)
    urgency = urgency_score(days_until_due(task, today))
    impact = impact_score(task, system)
    safety = safety_score(task)
    weighted = (
        urgency * config.deadline_weight
        + impact * config.impact_weight
        + urgency * config.failure_weight
        + impact * config.energy_weight
        + safety * config.safety_weight
    )
    return min(100, round_half_up(weighted * 100))


def generate_alerts_from_tasks(
    tasks: Sequence[MaintenanceTask],
    config: AlertConfig | None = None,
    *,
    today: date | None = None,
) -> list[Alert]:
    """Alerts for pending tasks, highest score first."""
    config = config or AlertConfig()
    today = today or datetime.now(UTC).date()
    alerts: list[Alert] = []

    for task in tasks:
        if task.status is not TaskStatus.PENDING:
            continue

        score = score_task(task, config, today)
        if score < MIN_ALERT_SCORE:
            continue

        system = map_category_to_system(task.category)
        days = days_until_due(task, today)
        alerts.append(
            Alert(
                id=f"alert-{task.id}",
                title=task.title,
                severity=severity_for(score),
                score=score,
                consequence=_consequence(
                    task, days, urgency_score(days), impact_score(task, system)
                ),
                deadline=task.due_date,
                cost=task.cost,
                system=system,
                actions=_actions(task),
            )
        )

    alerts.sort(key=lambda a: a.score, reverse=True)
    return alerts


def calculate_money_savings(alerts: Sequence[Alert]) -> MoneySavings:
    """Estimated monthly savings and avoided emergency spend."""
    monthly = 0
    avoided = 0
    for alert in alerts:
        if alert.system in (AlertSystem.HVAC, AlertSystem.WATER):
            monthly += round_half_up((alert.cost or DEFAULT_TASK_COST) * EFFICIENCY_GAIN)
        if alert.severity is AlertSeverity.HIGH and alert.cost:
            avoided += round_half_up(alert.cost * (EMERGENCY_COST_MULTIPLIER - 1))
    return MoneySavings(monthly_savings=monthly, avoided_surprise=avoided)
