"""Write one snapshot's results in a single transaction.

Rows are upserted on ``(snapshot_id, path)``, so re-running a snapshot
overwrites its previous values instead of adding duplicates. Severity
members become their labels here and nowhere earlier.
"""

import json
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from ..criticality.models import Dimension, FileCriticality, FolderCriticality
from ..exceptions import PersistenceError
from ..hierarchy.models import FolderHierarchy
from ..logging_config import get_logger

logger = get_logger(__name__)

_DIMENSIONS = [d.value for d in Dimension]
_SEVERITY_COLS = [f"severity_{d}" for d in _DIMENSIONS] + ["overall_severity"]
_DEBT_COLS = [f"debt_cov_{d}" for d in _DIMENSIONS] + ["debt_cov_overall"]
_TOTAL_COLS = [
    "total_issues",
    "total_complexity",
    "total_churn",
    "total_coupling_deps",
    "total_frequency",
    "total_authors",
    "total_halstead_volume",
    "total_halstead_difficulty",
    "total_halstead_effort",
    "total_halstead_bugs",
    "file_count",
]
_METRIC_COLS = _TOTAL_COLS + ["avg_coverage"]


def _upsert_sql(table: str, key: str, cols: list[str]) -> str:
    all_cols = ["snapshot_id", key] + cols
    updates = ", ".join(f"{c} = excluded.{c}" for c in cols)
    return (
        f"INSERT INTO {table} ({', '.join(all_cols)}) "
        f"VALUES ({', '.join('?' for _ in all_cols)}) "
        f"ON CONFLICT(snapshot_id, {key}) DO UPDATE SET {updates}"
    )


def _severity_labels(record) -> list[str]:
    return [getattr(record, d).label for d in _DIMENSIONS] + [record.overall.label]


def register_snapshot(
    conn: sqlite3.Connection,
    label: str,
    commit_date: Optional[str] = None,
    author: Optional[str] = None,
    message: Optional[str] = None,
) -> int:
    """Insert (or refresh) a snapshot row by label and return its id."""
    try:
        conn.execute(
            """
            INSERT INTO snapshots (label, commit_date, author, message, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(label) DO UPDATE SET
                commit_date = COALESCE(excluded.commit_date, snapshots.commit_date),
                author = COALESCE(excluded.author, snapshots.author),
                message = COALESCE(excluded.message, snapshots.message)
            """,
            (label, commit_date, author, message, datetime.now(timezone.utc).isoformat()),
        )
        row = conn.execute("SELECT id FROM snapshots WHERE label = ?", (label,)).fetchone()
    except sqlite3.Error as e:
        raise PersistenceError("register snapshot", str(e)) from e
    return int(row[0])


def save_snapshot_results(
    conn: sqlite3.Connection,
    snapshot_id: int,
    file_criticalities: Iterable[FileCriticality],
    folder_criticalities: Iterable[FolderCriticality],
    hierarchy: Optional[FolderHierarchy] = None,
    folder_coverage: Optional[Mapping[str, float]] = None,
) -> None:
    """Persist all derived records of one snapshot atomically.

    Parameters
    ----------
    conn:
        An open connection from ``RadarDB.connect()``.
    snapshot_id:
        The ``snapshots.id`` the records belong to.
    file_criticalities, folder_criticalities:
        Records computed for that snapshot.
    hierarchy:
        Optional folder tree; its child sets and totals are stored alongside.
    folder_coverage:
        Folder -> average coverage from the code-quality server, stored on
        the folder totals rows. Folders without an entry get 0.

    Raises
    ------
    PersistenceError
        On any database error. Nothing from this call is left behind.
    """
    file_rows = [
        (snapshot_id, r.file_path, *_severity_labels(r)) for r in file_criticalities
    ]
    folder_rows = [
        (
            snapshot_id,
            r.folder_path,
            *_severity_labels(r),
            *[r.debt.get(d) for d in _DIMENSIONS],
            r.debt.get("overall"),
        )
        for r in folder_criticalities
    ]
    hierarchy_rows = []
    total_rows = []
    if hierarchy is not None:
        hierarchy_rows = [
            (snapshot_id, path, json.dumps(sorted(children)))
            for path, children in hierarchy.children.items()
        ]
        coverage = folder_coverage or {}
        for path, totals in hierarchy.totals.items():
            values = totals.as_dict()
            total_rows.append(
                (
                    snapshot_id,
                    path,
                    *[values[c.replace("total_", "", 1)] for c in _TOTAL_COLS],
                    coverage.get(path, 0.0),
                )
            )

    try:
        conn.execute("BEGIN")
        if file_rows:
            conn.executemany(
                _upsert_sql("file_criticality", "file_path", _SEVERITY_COLS), file_rows
            )
        if folder_rows:
            conn.executemany(
                _upsert_sql("folder_criticality", "folder_path", _SEVERITY_COLS + _DEBT_COLS),
                folder_rows,
            )
        if hierarchy_rows:
            conn.executemany(
                _upsert_sql("folder_hierarchy", "folder_path", ["children"]), hierarchy_rows
            )
        if total_rows:
            conn.executemany(_upsert_sql("folder_metrics", "folder_path", _METRIC_COLS), total_rows)
        conn.execute("COMMIT")
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise PersistenceError("save snapshot results", str(e), snapshot_id=snapshot_id) from e

    logger.info(
        "Saved snapshot %d: %d files, %d folders", snapshot_id, len(file_rows), len(folder_rows)
    )
