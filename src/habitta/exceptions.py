"""Exceptions for broken invariants and misconfiguration.

Expected domain outcomes (a rejected update, a held conflict, a system with
too little data to assess) are return values. Everything here signals a
programming or configuration error and should surface immediately.
"""
from __future__ import annotations

from dataclasses import dataclass


class HabittaError(Exception):
    """Base class for Habitta Core errors."""


class UnknownAuthoritySourceError(HabittaError, ValueError):
    """An evidence source outside the authority hierarchy."""

    def __init__(self, source: object) -> None:
        self.source = source
        super().__init__(f"Unknown authority source: {source!r}")


class UnknownSystemKindError(HabittaError, ValueError):
    """A system kind with no configuration for the requested operation."""

    def __init__(self, kind: object, context: str | None = None) -> None:
        self.kind = kind
        self.context = context
        message = f"Unknown system kind: {kind!r}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class UnknownClimateZoneError(HabittaError, KeyError):
    """No survival profile is configured for a climate zone."""

    def __init__(self, zone: str) -> None:
        self.zone = zone
        super().__init__(zone)

    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return f"No climate profile configured for zone {self.zone!r}"


class InvalidProvenanceError(HabittaError, ValueError):
    """A stored provenance blob failed boundary validation."""


class SystemNotFoundError(HabittaError, LookupError):
    """A system id that the store does not know about."""


@dataclass
class StaleRecordError(HabittaError):
    """Raised when a write loses an optimistic-concurrency race.

    The caller read revision ``expected_revision`` but another writer has
    already committed a newer one. Re-read the record and resolve again.
    """

    system_id: str
    expected_revision: int

    def __str__(self) -> str:
        return (
            f"System {self.system_id} changed since revision "
            f"{self.expected_revision} was read"
        )
