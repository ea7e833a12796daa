"""Maintenance alert ranking."""

from .priority import (
    MIN_ALERT_SCORE,
    MoneySavings,
    calculate_money_savings,
    generate_alerts_from_tasks,
    map_category_to_system,
    score_task,
)

__all__ = [
    "MIN_ALERT_SCORE",
    "MoneySavings",
    "calculate_money_savings",
    "generate_alerts_from_tasks",
    "map_category_to_system",
    "score_task",
]
