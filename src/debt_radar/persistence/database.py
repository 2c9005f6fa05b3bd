"""SQLite database holding per-snapshot criticality results."""

import sqlite3
from pathlib import Path
from typing import Optional, Union

from ..exceptions import PersistenceError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 2

_SEVERITY_COLUMNS = """
                severity_complexity TEXT NOT NULL DEFAULT 'LOW',
                severity_coupling   TEXT NOT NULL DEFAULT 'LOW',
                severity_issues     TEXT NOT NULL DEFAULT 'LOW',
                severity_churn      TEXT NOT NULL DEFAULT 'LOW',
                severity_authors    TEXT NOT NULL DEFAULT 'LOW',
                severity_halstead   TEXT NOT NULL DEFAULT 'LOW',
                overall_severity    TEXT NOT NULL DEFAULT 'LOW'"""


class RadarDB:
    """Manages the results database.

    Usage::

        with RadarDB("repositories.db") as db:
            result = CriticalityPipeline().run("a1b2c3", records, loc, conn=db.conn)

    ``":memory:"`` opens a private in-memory database.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("RadarDB is not connected. Use as context manager or call connect().")
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: transactions are opened explicitly by the writer.
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._migrate()
        logger.debug("Results DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "RadarDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create all tables."""
        c = self.conn
        try:
            c.execute("BEGIN")
            c.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
            row = c.execute("SELECT version FROM schema_version").fetchone()
            version = None if row is None else int(row[0])

            # ── snapshots ────────────────────────────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS snapshots (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    label        TEXT    NOT NULL UNIQUE,
                    commit_date  TEXT,
                    author       TEXT,
                    message      TEXT,
                    created_at   TEXT    NOT NULL
                )
                """
            )

            # ── file_criticality ─────────────────────────────────────
            c.execute(
                f"""
                CREATE TABLE IF NOT EXISTS file_criticality (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    snapshot_id INTEGER NOT NULL REFERENCES snapshots(id) ON DELETE CASCADE,
                    file_path   TEXT    NOT NULL,{_SEVERITY_COLUMNS},
                    UNIQUE(snapshot_id, file_path)
                )
                """
            )

            # ── folder_criticality ───────────────────────────────────
            c.execute(
                f"""
                CREATE TABLE IF NOT EXISTS folder_criticality (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    snapshot_id INTEGER NOT NULL REFERENCES snapshots(id) ON DELETE CASCADE,
                    folder_path TEXT    NOT NULL,{_SEVERITY_COLUMNS},
                    debt_cov_complexity REAL,
                    debt_cov_coupling   REAL,
                    debt_cov_issues     REAL,
                    debt_cov_churn      REAL,
                    debt_cov_authors    REAL,
                    debt_cov_halstead   REAL,
                    debt_cov_overall    REAL,
                    UNIQUE(snapshot_id, folder_path)
                )
                """
            )

            # ── folder_hierarchy ─────────────────────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS folder_hierarchy (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    snapshot_id INTEGER NOT NULL REFERENCES snapshots(id) ON DELETE CASCADE,
                    folder_path TEXT    NOT NULL,
                    children    TEXT    NOT NULL DEFAULT '[]',
                    UNIQUE(snapshot_id, folder_path)
                )
                """
            )

            # ── folder_metrics (additive totals) ─────────────────────
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS folder_metrics (
                    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
                    snapshot_id         INTEGER NOT NULL REFERENCES snapshots(id) ON DELETE CASCADE,
                    folder_path         TEXT    NOT NULL,
                    total_issues        REAL NOT NULL DEFAULT 0,
                    total_complexity    REAL NOT NULL DEFAULT 0,
                    total_churn         REAL NOT NULL DEFAULT 0,
                    total_coupling_deps REAL NOT NULL DEFAULT 0,
                    total_frequency     REAL NOT NULL DEFAULT 0,
                    total_authors       REAL NOT NULL DEFAULT 0,
                    total_halstead_volume     REAL NOT NULL DEFAULT 0,
                    total_halstead_difficulty REAL NOT NULL DEFAULT 0,
                    total_halstead_effort     REAL NOT NULL DEFAULT 0,
                    total_halstead_bugs       REAL NOT NULL DEFAULT 0,
                    file_count          INTEGER NOT NULL DEFAULT 0,
                    avg_coverage        REAL NOT NULL DEFAULT 0,
                    UNIQUE(snapshot_id, folder_path)
                )
                """
            )

            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_file_crit_snapshot ON file_criticality(snapshot_id)"
            )
            c.execute(
                "CREATE INDEX IF NOT EXISTS idx_folder_crit_snapshot ON folder_criticality(snapshot_id)"
            )

            # v1 -> v2: folder-level coverage from the code-quality server
            if version is not None and version < 2:
                c.execute(
                    "ALTER TABLE folder_metrics "
                    "ADD COLUMN avg_coverage REAL NOT NULL DEFAULT 0"
                )

            if version is None:
                c.execute("INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,))
            elif version < _SCHEMA_VERSION:
                c.execute("UPDATE schema_version SET version = ?", (_SCHEMA_VERSION,))
            c.execute("COMMIT")
        except sqlite3.Error as e:
            if c.in_transaction:
                c.execute("ROLLBACK")
            raise PersistenceError("migrate schema", str(e)) from e
