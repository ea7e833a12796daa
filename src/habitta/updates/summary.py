"""Chat-safe summaries of a system update.

Summaries only name fields that actually appear in the resolution. They
never claim a value was saved when it was held, and never mention a brand
that the update did not touch.
"""
from __future__ import annotations

from collections.abc import Sequence

from ..models.provenance import SystemField

FIELD_LABELS: dict[SystemField, str] = {
    SystemField.BRAND: "brand",
    SystemField.MODEL: "model number",
    SystemField.SERIAL: "serial number",
    SystemField.MANUFACTURE_YEAR: "manufacture year",
    SystemField.CAPACITY_RATING: "capacity",
    SystemField.FUEL_TYPE: "fuel type",
}


def _system_label(system_type: str) -> str:
    label = system_type.replace("_", " ").strip().lower()
    if label == "hvac":
        return "HVAC system"
    return label or "system"


def _join(labels: Sequence[str]) -> str:
    if len(labels) <= 1:
        return "".join(labels)
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"


def _describe(fields: Sequence[SystemField]) -> str:
    return _join([FIELD_LABELS[f] for f in fields])


def build_chat_summary(
    *,
    applied: bool,
    held: bool,
    was_overwrite: bool,
    fields_updated: Sequence[SystemField],
    fields_held: Sequence[SystemField],
    system_type: str,
    brand: str | None = None,
) -> str:
    """Render a one-line summary for the chat layer.

    Args:
        applied: Whether any field was written.
        held: Whether the update is waiting on homeowner confirmation.
        was_overwrite: Whether a written field replaced an existing value.
        fields_updated: Fields written by the resolution.
        fields_held: Fields held because of an equal-authority conflict.
        system_type: System key or free-text label for copy.
        brand: Extracted brand; only shown if the brand itself was written.
    """
    system = _system_label(system_type)
    if brand and SystemField.BRAND in fields_updated:
        system = f"{brand} {system}"

    if held and not applied:
        return (
            f"This doesn't match what's on file for your {system} "
            f"({_describe(fields_held)}). Can you confirm which is correct?"
        )

    if not applied:
        return f"Your {system} record already has this information."

    if was_overwrite:
        message = f"Updated the {_describe(fields_updated)} on your {system} record."
    else:
        message = f"Added the {_describe(fields_updated)} to your {system} record."

    if fields_held:
        message += (
            f" The {_describe(fields_held)} didn't match what's on file, "
            "so I left those unchanged."
        )
    return message
