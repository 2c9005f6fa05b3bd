"""Read persisted snapshot results back into engine records."""

import json
import sqlite3
from typing import Optional

from ..criticality.models import Dimension, FileCriticality, FolderCriticality, SeverityLevel
from ..logging_config import get_logger

logger = get_logger(__name__)

_DIMENSIONS = [d.value for d in Dimension]


def get_snapshot_id(conn: sqlite3.Connection, label: str) -> Optional[int]:
    """Return the id of the snapshot with this label, or ``None``."""
    row = conn.execute("SELECT id FROM snapshots WHERE label = ?", (label,)).fetchone()
    return None if row is None else int(row["id"])


def _levels(row: sqlite3.Row) -> dict[str, SeverityLevel]:
    return {d: SeverityLevel.from_label(row[f"severity_{d}"]) for d in _DIMENSIONS}


def load_file_criticality(
    conn: sqlite3.Connection, snapshot_id: int, label: str = ""
) -> dict[str, FileCriticality]:
    """Load all file criticality rows of a snapshot, keyed by path."""
    rows = conn.execute(
        "SELECT * FROM file_criticality WHERE snapshot_id = ? ORDER BY file_path",
        (snapshot_id,),
    ).fetchall()
    return {
        r["file_path"]: FileCriticality(snapshot=label, file_path=r["file_path"], **_levels(r))
        for r in rows
    }


def load_folder_criticality(
    conn: sqlite3.Connection, snapshot_id: int, label: str = ""
) -> dict[str, FolderCriticality]:
    """Load all folder criticality rows of a snapshot, keyed by path."""
    rows = conn.execute(
        "SELECT * FROM folder_criticality WHERE snapshot_id = ? ORDER BY folder_path",
        (snapshot_id,),
    ).fetchall()

    results: dict[str, FolderCriticality] = {}
    for r in rows:
        debt = {d: r[f"debt_cov_{d}"] for d in _DIMENSIONS}
        debt["overall"] = r["debt_cov_overall"]
        results[r["folder_path"]] = FolderCriticality(
            snapshot=label, folder_path=r["folder_path"], debt=debt, **_levels(r)
        )
    return results


def parse_children(folder_path: str, blob: Optional[str]) -> set[str]:
    """Decode a stored children blob. Unreadable blobs yield an empty set."""
    if not blob:
        return set()
    try:
        decoded = json.loads(blob)
    except (TypeError, ValueError):
        logger.warning("Unreadable children list for %s; treating as empty", folder_path)
        return set()
    if not isinstance(decoded, list):
        logger.warning("Children of %s are not a list; treating as empty", folder_path)
        return set()
    return {str(name) for name in decoded}


def load_folder_children(conn: sqlite3.Connection, snapshot_id: int) -> dict[str, set[str]]:
    """Load the folder -> children relation of a snapshot."""
    rows = conn.execute(
        "SELECT folder_path, children FROM folder_hierarchy WHERE snapshot_id = ?",
        (snapshot_id,),
    ).fetchall()
    return {r["folder_path"]: parse_children(r["folder_path"], r["children"]) for r in rows}


def load_folder_totals(conn: sqlite3.Connection, snapshot_id: int) -> dict[str, dict[str, float]]:
    """Load additive folder totals and reported coverage, keyed by folder path."""
    rows = conn.execute(
        "SELECT * FROM folder_metrics WHERE snapshot_id = ?", (snapshot_id,)
    ).fetchall()
    results: dict[str, dict[str, float]] = {}
    for r in rows:
        values = dict(r)
        for key in ("id", "snapshot_id", "folder_path"):
            values.pop(key, None)
        results[r["folder_path"]] = values
    return results
