"""Storage collaborator contract for the update gate."""
from __future__ import annotations

from typing import Protocol

from ..models.decision import DecisionEvent
from ..models.system import CanonicalSystem, SystemRecord


class SystemStore(Protocol):
    """Persistence consumed by apply_system_update, sync_to_canonical and
    record_decision.

    The core reads, resolves, then writes. Implementations must reject a
    ``save_system`` whose ``expected_revision`` no longer matches (raise
    StaleRecordError) so a lost update is loud instead of silent.
    """

    def find_system(self, home_id: str, system_key: str) -> SystemRecord | None: ...

    def get_system(self, system_id: str) -> SystemRecord | None: ...

    def save_system(
        self, record: SystemRecord, *, expected_revision: int | None = None
    ) -> SystemRecord: ...

    def get_canonical(self, home_id: str, kind: str) -> CanonicalSystem | None: ...

    def save_canonical(self, system: CanonicalSystem) -> None: ...

    def get_home_owner(self, home_id: str) -> str | None: ...

    def get_home_year_built(self, home_id: str) -> int | None: ...

    def append_decision(self, event: DecisionEvent) -> None: ...

    def list_decisions(self, system_id: str) -> list[DecisionEvent]: ...
