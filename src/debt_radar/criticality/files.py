"""Per-file criticality: classify each ordinary file along six dimensions."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..hierarchy.builder import normalize_path
from ..ingestion.models import FileFactRecord
from ..logging_config import get_logger
from .classifier import DEFAULT_DENSITY_THRESHOLDS, DensityThresholds, classify
from .models import Dimension, FileCriticality

logger = get_logger(__name__)

# Which raw fact feeds which dimension.
_DIMENSION_FACTS: dict[Dimension, str] = {
    Dimension.COMPLEXITY: "complexity",
    Dimension.COUPLING: "coupling",
    Dimension.ISSUES: "issues",
    Dimension.CHURN: "churn_frequency",
    Dimension.AUTHORS: "churn_authors",
    Dimension.HALSTEAD: "halstead_volume",
}


class FileCriticalityComputer:
    """Turns one snapshot's fact records into ``FileCriticality`` records.

    Sizes come from the effective-LOC lookup, not from ``record.loc``: the
    lookup is the code-quality server's non-comment line count, which can
    diverge from the structural or churn-derived loc. Paths missing from the
    lookup get size 0 and therefore classify LOW everywhere.
    """

    def __init__(self, thresholds: Optional[Mapping[Dimension, DensityThresholds]] = None):
        self.thresholds = {**DEFAULT_DENSITY_THRESHOLDS, **(thresholds or {})}

    def compute(
        self, snapshot: str, record: FileFactRecord, loc: Optional[float]
    ) -> FileCriticality:
        levels = {
            dim.value: classify(getattr(record, attr), loc, dim, self.thresholds)
            for dim, attr in _DIMENSION_FACTS.items()
        }
        return FileCriticality(
            snapshot=snapshot, file_path=normalize_path(record.file_path), **levels
        )

    def compute_all(
        self,
        snapshot: str,
        records: Iterable[FileFactRecord],
        effective_loc: Optional[Mapping[str, float]] = None,
    ) -> list[FileCriticality]:
        """Classify every ordinary file of the snapshot.

        Structural sub-file entries (nested types) are skipped; they inherit
        their owner file's scores downstream. Paths are normalized; later
        records for the same path replace earlier ones, matching upsert-by-key
        semantics.
        """
        lookup = {normalize_path(p): v for p, v in (effective_loc or {}).items()}
        results: dict[str, FileCriticality] = {}
        skipped = 0

        for record in records:
            if not record.is_ordinary_file:
                skipped += 1
                continue
            path = normalize_path(record.file_path)
            results[path] = self.compute(snapshot, record, lookup.get(path) or 0)

        if not results:
            logger.info("No fact records for snapshot %s; nothing to classify", snapshot)
            return []

        logger.info(
            "Classified %d files for snapshot %s (%d structural entries skipped)",
            len(results),
            snapshot,
            skipped,
        )
        return list(results.values())
