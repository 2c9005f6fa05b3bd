"""
Debt Radar - per-folder risk rollup for one snapshot of a source tree.

Classifies every file along six quality dimensions by metric density, then
rolls the severities and a risk-weighted coverage gap up through the
directory tree.
"""

__version__ = "0.1.0"

from .config import EngineConfig, ThresholdConfig, load_config
from .criticality import (
    Dimension,
    FileCriticality,
    FileCriticalityComputer,
    FolderAggregator,
    FolderCriticality,
    SeverityLevel,
    classify,
)
from .hierarchy import FolderHierarchy, HierarchyBuilder
from .ingestion import COVERAGE_EXCLUDED, FactCollector, FileFactRecord, StructuralKind
from .pipeline import CriticalityPipeline, SnapshotResult

__all__ = [
    "COVERAGE_EXCLUDED",
    "CriticalityPipeline",  # Main entry point
    "Dimension",
    "EngineConfig",
    "FactCollector",
    "FileCriticality",
    "FileCriticalityComputer",
    "FileFactRecord",
    "FolderAggregator",
    "FolderCriticality",
    "FolderHierarchy",
    "HierarchyBuilder",
    "SeverityLevel",
    "SnapshotResult",
    "StructuralKind",
    "ThresholdConfig",
    "classify",
    "load_config",
]
