"""Reconstruct the directory tree from flat file paths.

Each path is split into segments once; the ancestor chain is then the list
of segment prefixes, ending at the root sentinel. The root is an explicit
base case: a file with no directory part is a direct child of root.

    >>> ancestor_chain("src/api/handler.go")
    [('src/api', 'handler.go'), ('src', 'api'), ('/', 'src')]
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from ..ingestion.models import FileFactRecord
from ..logging_config import get_logger
from .models import ROOT, FolderHierarchy, FolderTotals

logger = get_logger(__name__)


def path_segments(file_path: str) -> list[str]:
    """Split a path into segments, normalizing separators.

    Backslashes become forward slashes; empty and ``.`` segments (leading
    slashes, ``./`` prefixes, doubled separators) are dropped.
    """
    return [s for s in file_path.replace("\\", "/").split("/") if s and s != "."]


def normalize_path(file_path: str) -> str:
    return "/".join(path_segments(file_path))


def folder_depth(folder_path: str, root: str = ROOT) -> int:
    """Number of segments below root; the root itself has depth 0."""
    if folder_path == root:
        return 0
    return len(path_segments(folder_path))


def join_child(folder_path: str, child_name: str, root: str = ROOT) -> str:
    if folder_path == root:
        return child_name
    return f"{folder_path}/{child_name}"


def ancestor_chain(file_path: str, root: str = ROOT) -> list[tuple[str, str]]:
    """(folder, child name) pairs from the immediate parent up to root."""
    segments = path_segments(file_path)
    chain: list[tuple[str, str]] = []
    for depth in range(len(segments) - 1, -1, -1):
        folder = "/".join(segments[:depth]) if depth else root
        chain.append((folder, segments[depth]))
    return chain


def latest_per_path(records: Iterable[FileFactRecord]) -> list[FileFactRecord]:
    """One record per normalized path; the last record for a path wins.

    Returned records carry the normalized path. Records whose path
    normalizes to nothing are dropped.
    """
    latest: dict[str, FileFactRecord] = {}
    for record in records:
        path = normalize_path(record.file_path)
        if not path:
            continue
        if path != record.file_path:
            record = replace(record, file_path=path)
        latest[path] = record
    return list(latest.values())


class HierarchyBuilder:
    """Incrementally builds a ``FolderHierarchy`` for one snapshot.

    Args:
        hierarchy: Accumulator to fill. A fresh one is created when omitted;
            never share one across snapshots.
        accumulate_totals: Also sum additive facts into each ancestor.
    """

    def __init__(
        self,
        hierarchy: Optional[FolderHierarchy] = None,
        accumulate_totals: bool = True,
    ) -> None:
        self.hierarchy = hierarchy if hierarchy is not None else FolderHierarchy()
        self.accumulate_totals = accumulate_totals

    def ingest(self, file_path: str, facts: Optional[FileFactRecord] = None) -> bool:
        """Register one ordinary file. Returns False if the path is empty."""
        h = self.hierarchy
        chain = ancestor_chain(file_path, h.root)
        if not chain:
            logger.debug("Skipping empty path %r", file_path)
            return False

        h.files.add(normalize_path(file_path))
        for folder, child_name in chain:
            h.children.setdefault(folder, set()).add(child_name)
            if self.accumulate_totals and facts is not None:
                h.totals.setdefault(folder, FolderTotals()).add(facts)
        return True

    def ingest_records(self, records: Iterable[FileFactRecord]) -> FolderHierarchy:
        """Ingest every ordinary file once; structural sub-file entries are skipped.

        Duplicate records for a path count once, using the last of them.
        """
        count = 0
        for record in latest_per_path(r for r in records if r.is_ordinary_file):
            if self.ingest(record.file_path, record):
                count += 1
        logger.debug(
            "Hierarchy: %d files under %d folders", count, len(self.hierarchy.children)
        )
        return self.hierarchy


def build_hierarchy(
    records: Iterable[FileFactRecord], root: str = ROOT, accumulate_totals: bool = True
) -> FolderHierarchy:
    """Build a fresh hierarchy from a snapshot's fact records."""
    builder = HierarchyBuilder(FolderHierarchy(root=root), accumulate_totals=accumulate_totals)
    return builder.ingest_records(records)
