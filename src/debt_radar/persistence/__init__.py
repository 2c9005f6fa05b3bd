"""SQLite storage boundary for per-snapshot criticality results."""

from .database import RadarDB
from .reader import (
    get_snapshot_id,
    load_file_criticality,
    load_folder_children,
    load_folder_criticality,
    load_folder_totals,
    parse_children,
)
from .writer import register_snapshot, save_snapshot_results

__all__ = [
    "RadarDB",
    "get_snapshot_id",
    "load_file_criticality",
    "load_folder_children",
    "load_folder_criticality",
    "load_folder_totals",
    "parse_children",
    "register_snapshot",
    "save_snapshot_results",
]
