"""Directory tree reconstruction from flat file paths."""

from .builder import (
    HierarchyBuilder,
    ancestor_chain,
    build_hierarchy,
    folder_depth,
    join_child,
    latest_per_path,
    normalize_path,
    path_segments,
)
from .models import ROOT, FolderHierarchy, FolderTotals

__all__ = [
    "ROOT",
    "FolderHierarchy",
    "FolderTotals",
    "HierarchyBuilder",
    "ancestor_chain",
    "build_hierarchy",
    "folder_depth",
    "join_child",
    "latest_per_path",
    "normalize_path",
    "path_segments",
]
