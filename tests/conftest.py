from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

import pytest

from habitta.exceptions import StaleRecordError
from habitta.models.decision import DecisionEvent
from habitta.models.system import CanonicalSystem, SystemRecord
from habitta.store.sqlite_store import SQLiteSystemStore


class InMemoryStore:
    """Dict-backed SystemStore for property tests that need many fresh stores."""

    def __init__(
        self, owners: dict[str, str] | None = None, year_built: dict[str, int] | None = None
    ) -> None:
        self.owners = dict(owners or {})
        self.year_built = dict(year_built or {})
        self.systems: dict[str, SystemRecord] = {}
        self.canonical: dict[tuple[str, str], CanonicalSystem] = {}
        self.decisions: list[DecisionEvent] = []

    def find_system(self, home_id: str, system_key: str) -> SystemRecord | None:
        matches = [
            r
            for r in self.systems.values()
            if r.home_id == home_id and r.system_key.lower().startswith(system_key.lower())
        ]
        return max(matches, key=lambda r: r.created_at) if matches else None

    def get_system(self, system_id: str) -> SystemRecord | None:
        return self.systems.get(system_id)

    def save_system(self, record: SystemRecord, *, expected_revision: int | None = None) -> SystemRecord:
        if expected_revision is not None:
            current = self.systems.get(record.id)
            if current is None or current.revision != expected_revision:
                raise StaleRecordError(record.id, expected_revision)
        stored = record.model_copy(update={"revision": record.revision + 1})
        self.systems[stored.id] = stored
        return stored

    def get_canonical(self, home_id: str, kind: str) -> CanonicalSystem | None:
        return self.canonical.get((home_id, kind))

    def save_canonical(self, system: CanonicalSystem) -> None:
        self.canonical[(system.home_id, system.kind)] = system

    def get_home_owner(self, home_id: str) -> str | None:
        return self.owners.get(home_id)

    def get_home_year_built(self, home_id: str) -> int | None:
        return self.year_built.get(home_id)

    def append_decision(self, event: DecisionEvent) -> None:
        self.decisions.append(event)

    def list_decisions(self, system_id: str) -> list[DecisionEvent]:
        return [e for e in self.decisions if e.system_id == system_id]


@pytest.fixture()
def env_tmp():
    d = Path(tempfile.mkdtemp(prefix="habitta-"))
    try:
        yield d
    finally:
        shutil.rmtree(d, ignore_errors=True)


@pytest.fixture()
def store(env_tmp: Path) -> SQLiteSystemStore:
    s = SQLiteSystemStore(env_tmp / "habitta.db")
    s.upsert_home("home-1", "user-1", year_built=2005)
    return s


@pytest.fixture(scope="session")
def memory_store_cls() -> type[InMemoryStore]:
    return InMemoryStore
