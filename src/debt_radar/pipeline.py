"""One-snapshot batch run: facts -> file criticality -> folder rollup -> storage.

Everything is materialized in memory before the storage boundary is
touched, and every accumulator is created inside ``run()``, so separate
snapshots never share state.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

from .config import EngineConfig, load_config
from .criticality.files import FileCriticalityComputer
from .criticality.folders import FolderAggregator
from .criticality.models import FileCriticality, FolderCriticality
from .hierarchy.builder import HierarchyBuilder, latest_per_path, normalize_path
from .hierarchy.models import FolderHierarchy
from .ingestion.collector import FactBundle
from .ingestion.models import FileFactRecord
from .logging_config import get_logger, setup_logging
from .persistence.database import RadarDB
from .persistence.writer import register_snapshot, save_snapshot_results

logger = get_logger(__name__)


@dataclass
class SnapshotResult:
    """Everything derived for one snapshot."""

    snapshot: str
    file_criticalities: list[FileCriticality] = field(default_factory=list)
    folder_criticalities: list[FolderCriticality] = field(default_factory=list)
    hierarchy: FolderHierarchy = field(default_factory=FolderHierarchy)
    folder_coverage: dict[str, float] = field(default_factory=dict)
    snapshot_id: Optional[int] = None  # set once persisted

    @property
    def is_empty(self) -> bool:
        return not self.file_criticalities and not self.folder_criticalities

    def file(self, file_path: str) -> Optional[FileCriticality]:
        path = normalize_path(file_path)
        return next((c for c in self.file_criticalities if c.file_path == path), None)

    def folder(self, folder_path: str) -> Optional[FolderCriticality]:
        return next((c for c in self.folder_criticalities if c.folder_path == folder_path), None)


class CriticalityPipeline:
    """Runs classification and rollup for one snapshot at a time."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    @classmethod
    def from_config(
        cls,
        config_file: Optional[Path] = None,
        log_file: Optional[str] = None,
        **overrides,
    ) -> "CriticalityPipeline":
        """Load configuration, set up logging at its verbosity, and build a pipeline.

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        config = load_config(config_file, **overrides)
        setup_logging(config.verbosity, log_file=log_file)
        logger.debug("Pipeline configured (db_path=%s)", config.db_path)
        return cls(config)

    def open_db(self) -> RadarDB:
        """Results database at the configured ``db_path``; use it as a context manager."""
        return RadarDB(self.config.db_path)

    def _folder_coverage(self, raw: Optional[Mapping[str, float]]) -> dict[str, float]:
        root = self.config.root_path
        return {(normalize_path(p) or root): float(v) for p, v in (raw or {}).items()}

    def run(
        self,
        snapshot: str,
        records: Iterable[FileFactRecord],
        effective_loc: Optional[Mapping[str, float]] = None,
        conn: Optional[sqlite3.Connection] = None,
        snapshot_meta: Optional[Mapping[str, Optional[str]]] = None,
        folder_coverage: Optional[Mapping[str, float]] = None,
    ) -> SnapshotResult:
        """Compute (and optionally persist) all derived records of a snapshot.

        Args:
            snapshot: Snapshot label, typically a commit SHA.
            records: Fact records from the collectors. When a path appears
                more than once, the last record for it is used.
            effective_loc: Path -> effective LOC used for density.
            conn: Open ``RadarDB`` connection; when given, results are
                written in one transaction.
            snapshot_meta: Optional ``commit_date``/``author``/``message``.
            folder_coverage: Folder -> average coverage reported by the
                code-quality server, stored with the folder totals.

        Raises:
            InvalidFactError: If ``validate_facts`` is on and a record is bad.
            PersistenceError: If the atomic write fails.
        """
        cfg = self.config
        records = list(records)
        if cfg.validate_facts:
            for record in records:
                record.validate()

        files = latest_per_path(r for r in records if r.is_ordinary_file)
        if not files:
            logger.info("Snapshot %s has no file facts; skipping", snapshot)
            return SnapshotResult(snapshot=snapshot, hierarchy=FolderHierarchy(root=cfg.root_path))

        builder = HierarchyBuilder(
            FolderHierarchy(root=cfg.root_path), accumulate_totals=cfg.accumulate_totals
        )
        hierarchy = builder.ingest_records(files)

        computer = FileCriticalityComputer(cfg.thresholds.as_mapping())
        file_crits = computer.compute_all(snapshot, files, effective_loc)

        aggregator = FolderAggregator(
            precision=cfg.debt_precision,
            coverage_excluded=cfg.coverage_excluded,
            is_test_file=cfg.is_test_file,
            root=cfg.root_path,
        )
        folder_crits = aggregator.aggregate(
            snapshot,
            file_crits,
            {r.file_path: r.coverage_percentage for r in files},
            {r.file_path: r.lines_to_cover for r in files},
            hierarchy.children,
        )

        result = SnapshotResult(
            snapshot=snapshot,
            file_criticalities=file_crits,
            folder_criticalities=folder_crits,
            hierarchy=hierarchy,
            folder_coverage=self._folder_coverage(folder_coverage),
        )

        if conn is not None:
            meta = dict(snapshot_meta or {})
            result.snapshot_id = register_snapshot(
                conn,
                snapshot,
                commit_date=meta.get("commit_date"),
                author=meta.get("author"),
                message=meta.get("message"),
            )
            save_snapshot_results(
                conn,
                result.snapshot_id,
                file_crits,
                folder_crits,
                hierarchy=hierarchy,
                folder_coverage=result.folder_coverage,
            )

        return result

    def run_bundle(
        self,
        snapshot: str,
        bundle: FactBundle,
        conn: Optional[sqlite3.Connection] = None,
        snapshot_meta: Optional[Mapping[str, Optional[str]]] = None,
    ) -> SnapshotResult:
        """``run()`` over a ``FactCollector`` bundle."""
        return self.run(
            snapshot,
            bundle.records,
            bundle.effective_loc,
            conn,
            snapshot_meta,
            folder_coverage=bundle.folder_coverage,
        )
