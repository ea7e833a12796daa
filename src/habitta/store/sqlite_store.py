"""SQLite store for system records, canonical systems, and decision events."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from ..exceptions import StaleRecordError
from ..logging import get_logger
from ..models.decision import DecisionEvent
from ..models.system import CanonicalSystem, SystemRecord

logger = get_logger(__name__)


class SQLiteSystemStore:
    """SQLite-backed storage collaborator.

    Responsibilities:
    - homes(home_id -> user_id, year_built) for canonical record ownership
    - home_systems: per-evidence system records with optimistic revisions
    - systems: one canonical row per (home_id, kind)
    - decision_events: append-only decision history

    Rows keep the full pydantic payload in ``full_json``; indexed columns
    exist only for lookups. Payloads are re-validated on every read.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _get_conn(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        # Enforce PRAGMAs per-connection
        conn.execute("PRAGMA foreign_keys=ON;")
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_conn() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS homes (
                    home_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    year_built INTEGER
                );

                CREATE TABLE IF NOT EXISTS home_systems (
                    id TEXT PRIMARY KEY,
                    home_id TEXT NOT NULL,
                    system_key TEXT NOT NULL,
                    generation INTEGER NOT NULL,
                    revision INTEGER NOT NULL,
                    confidence REAL NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    full_json TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_home_systems_home ON home_systems(home_id, system_key);

                CREATE TABLE IF NOT EXISTS systems (
                    id TEXT PRIMARY KEY,
                    home_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    install_source TEXT NOT NULL,
                    install_year INTEGER,
                    confidence REAL NOT NULL,
                    updated_at TEXT NOT NULL,
                    full_json TEXT NOT NULL,
                    UNIQUE (home_id, kind)
                );

                CREATE TABLE IF NOT EXISTS decision_events (
                    id TEXT PRIMARY KEY,
                    home_id TEXT NOT NULL,
                    system_id TEXT NOT NULL,
                    generation INTEGER NOT NULL,
                    decision_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    full_json TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_decisions_system ON decision_events(system_id, created_at);
                """
            )
            conn.commit()

    # ----------------------------- Homes -----------------------------

    def upsert_home(self, home_id: str, user_id: str, year_built: int | None = None) -> None:
        with self._get_conn() as conn:
            conn.execute(
                """
                INSERT INTO homes (home_id, user_id, year_built) VALUES (?, ?, ?)
                ON CONFLICT(home_id) DO UPDATE SET
                    user_id = excluded.user_id,
                    year_built = COALESCE(excluded.year_built, homes.year_built)
                """,
                (home_id, user_id, year_built),
            )
            conn.commit()

    def get_home_owner(self, home_id: str) -> str | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT user_id FROM homes WHERE home_id = ?", (home_id,)
            ).fetchone()
            return row["user_id"] if row else None

    def get_home_year_built(self, home_id: str) -> int | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT year_built FROM homes WHERE home_id = ?", (home_id,)
            ).fetchone()
            return row["year_built"] if row else None

    # -------------------------- System records -----------------------

    def find_system(self, home_id: str, system_key: str) -> SystemRecord | None:
        """Most recent record whose key starts with ``system_key``.

        Keys carry a brand/uniqueness suffix (``water_heater_rheem_x1``), so
        lookup by kind is a case-insensitive prefix match.
        """
        prefix = system_key.lower()
        with self._get_conn() as conn:
            row = conn.execute(
                """
                SELECT full_json FROM home_systems
                WHERE home_id = ? AND substr(lower(system_key), 1, length(?)) = ?
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (home_id, prefix, prefix),
            ).fetchone()
            return SystemRecord.model_validate_json(row["full_json"]) if row else None

    def get_system(self, system_id: str) -> SystemRecord | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT full_json FROM home_systems WHERE id = ?", (system_id,)
            ).fetchone()
            return SystemRecord.model_validate_json(row["full_json"]) if row else None

    def list_systems(self, home_id: str) -> list[SystemRecord]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT full_json FROM home_systems WHERE home_id = ? ORDER BY created_at",
                (home_id,),
            ).fetchall()
            return [SystemRecord.model_validate_json(r["full_json"]) for r in rows]

    def save_system(
        self, record: SystemRecord, *, expected_revision: int | None = None
    ) -> SystemRecord:
        """Insert a new record or update an existing one.

        With ``expected_revision`` set, the update only lands if the stored
        revision still matches; otherwise StaleRecordError is raised.

        Returns:
            The record as stored, with its revision bumped.
        """
        stored = record.model_copy(
            update={"revision": record.revision + 1, "updated_at": datetime.now(UTC)}
        )
        with self._get_conn() as conn:
            if expected_revision is None:
                conn.execute(
                    """
                    INSERT INTO home_systems (
                        id, home_id, system_key, generation, revision,
                        confidence, created_at, updated_at, full_json
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        stored.id,
                        stored.home_id,
                        stored.system_key,
                        stored.generation,
                        stored.revision,
                        stored.confidence,
                        stored.created_at.isoformat(),
                        stored.updated_at.isoformat(),
                        stored.model_dump_json(),
                    ),
                )
            else:
                cursor = conn.execute(
                    """
                    UPDATE home_systems SET
                        system_key = ?,
                        generation = ?,
                        revision = ?,
                        confidence = ?,
                        updated_at = ?,
                        full_json = ?
                    WHERE id = ? AND revision = ?
                    """,
                    (
                        stored.system_key,
                        stored.generation,
                        stored.revision,
                        stored.confidence,
                        stored.updated_at.isoformat(),
                        stored.model_dump_json(),
                        stored.id,
                        expected_revision,
                    ),
                )
                if cursor.rowcount == 0:
                    logger.warning(
                        "system_store.stale_write",
                        system_id=stored.id,
                        expected_revision=expected_revision,
                    )
                    raise StaleRecordError(stored.id, expected_revision)
            conn.commit()
        return stored

    # ------------------------ Canonical systems ----------------------

    def get_canonical(self, home_id: str, kind: str) -> CanonicalSystem | None:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT full_json FROM systems WHERE home_id = ? AND lower(kind) = lower(?)",
                (home_id, kind),
            ).fetchone()
            return CanonicalSystem.model_validate_json(row["full_json"]) if row else None

    def save_canonical(self, system: CanonicalSystem) -> None:
        with self._get_conn() as conn:
            conn.execute(
                """
                INSERT INTO systems (
                    id, home_id, kind, install_source, install_year,
                    confidence, updated_at, full_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    install_source = excluded.install_source,
                    install_year = excluded.install_year,
                    confidence = excluded.confidence,
                    updated_at = excluded.updated_at,
                    full_json = excluded.full_json
                """,
                (
                    system.id,
                    system.home_id,
                    system.kind,
                    system.install_source.value,
                    system.install_year,
                    system.confidence,
                    system.updated_at.isoformat(),
                    system.model_dump_json(),
                ),
            )
            conn.commit()

    # ------------------------- Decision events -----------------------

    def append_decision(self, event: DecisionEvent) -> None:
        with self._get_conn() as conn:
            conn.execute(
                """
                INSERT INTO decision_events (
                    id, home_id, system_id, generation, decision_type, created_at, full_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.home_id,
                    event.system_id,
                    event.generation,
                    event.decision_type.value,
                    event.created_at.isoformat(),
                    event.model_dump_json(),
                ),
            )
            conn.commit()

    def list_decisions(self, system_id: str) -> list[DecisionEvent]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT full_json FROM decision_events WHERE system_id = ? ORDER BY created_at",
                (system_id,),
            ).fetchall()
            return [DecisionEvent.model_validate_json(r["full_json"]) for r in rows]
