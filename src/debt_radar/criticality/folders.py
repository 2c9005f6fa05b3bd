"""Bottom-up folder rollup of file criticality and debt coverage.

Folders are processed deepest first, so by the time a folder is visited
every child folder is final and every child file is a terminal fact. Each
folder is visited once and only inspects its direct children, which makes
the pass linear in files + folders.

Per rollup key (six dimensions plus overall):
    severity  max over child folders' severities and child files' severities
    debt      weighted average of coverage over HIGH/CRITICAL files with a
              positive lines-to-cover weight; child folders contribute their
              raw (weighted_sum, total_lines) pair, not their rounded result

Debt accumulation is a sum, so the result does not depend on the order in
which children are visited.
"""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Iterable, Mapping, Optional, Union

from ..hierarchy.builder import folder_depth, join_child, normalize_path
from ..hierarchy.models import ROOT
from ..ingestion.models import COVERAGE_EXCLUDED
from ..logging_config import get_logger
from .models import (
    OVERALL,
    SEVERITY_KEYS,
    FileCriticality,
    FolderCriticality,
    SeverityLevel,
)

logger = get_logger(__name__)

# Files at or above this level feed the debt signal.
DEBT_SEVERITY_FLOOR = SeverityLevel.HIGH


@dataclass
class DebtAccumulator:
    """Running (weighted_sum, total_lines) for one folder and key.

    Sums are kept as exact fractions, so the finalized percentage does not
    depend on the order in which contributions were added or merged.
    """

    _weighted: Fraction = Fraction(0)
    _lines: Fraction = Fraction(0)

    @property
    def weighted_sum(self) -> float:
        return float(self._weighted)

    @property
    def total_lines(self) -> float:
        return float(self._lines)

    def add(self, weight: float, coverage: float) -> None:
        weight = Fraction(weight)
        self._weighted += weight * Fraction(coverage) / 100
        self._lines += weight

    def merge(self, other: "DebtAccumulator") -> None:
        self._weighted += other._weighted
        self._lines += other._lines

    def finalize(self, precision: int = 1) -> Optional[float]:
        """Debt coverage percentage, or None when nothing contributed."""
        if self._lines <= 0:
            return None
        return round(float(self._weighted * 100 / self._lines), precision)


@dataclass
class _FolderState:
    maxima: dict[str, SeverityLevel] = field(
        default_factory=lambda: {key: SeverityLevel.LOW for key in SEVERITY_KEYS}
    )
    debt: dict[str, DebtAccumulator] = field(
        default_factory=lambda: {key: DebtAccumulator() for key in SEVERITY_KEYS}
    )


FileCriticalities = Union[Mapping[str, FileCriticality], Iterable[FileCriticality]]


class FolderAggregator:
    """Rolls file criticality up through the folder tree for one snapshot.

    Args:
        precision: Decimal places kept in debt-coverage percentages.
        coverage_excluded: Coverage sentinel marking excluded/test files.
        is_test_file: Optional predicate; matching files get weight 0.
        root: Root sentinel used in the folder relation.
    """

    def __init__(
        self,
        precision: int = 1,
        coverage_excluded: float = COVERAGE_EXCLUDED,
        is_test_file: Optional[Callable[[str], bool]] = None,
        root: str = ROOT,
    ) -> None:
        self.precision = precision
        self.coverage_excluded = coverage_excluded
        self.is_test_file = is_test_file
        self.root = root

    def effective_weight(
        self, file_path: str, coverage: Optional[float], weight: Optional[float]
    ) -> float:
        """Lines-to-cover weight after test/exclusion rules. Never negative."""
        if coverage == self.coverage_excluded:
            return 0.0
        if self.is_test_file is not None and self.is_test_file(file_path):
            return 0.0
        if not weight or weight <= 0:
            return 0.0
        return float(weight)

    def aggregate(
        self,
        snapshot: str,
        file_criticalities: FileCriticalities,
        file_coverage: Mapping[str, float],
        file_weights: Mapping[str, float],
        folder_children: Mapping[str, Iterable[str]],
    ) -> list[FolderCriticality]:
        """Compute one ``FolderCriticality`` per folder in ``folder_children``.

        Returns an empty list when there is no hierarchy. Results are in
        processing order (deepest folders first).
        """
        if not folder_children:
            logger.info("No folder hierarchy for snapshot %s; nothing to aggregate", snapshot)
            return []

        files = _by_path(file_criticalities)
        coverage = {normalize_path(p): v for p, v in file_coverage.items()}
        weights = {normalize_path(p): v for p, v in file_weights.items()}

        ordered = sorted(folder_children, key=lambda p: (-folder_depth(p, self.root), p))
        states: dict[str, _FolderState] = {}

        for folder_path in ordered:
            state = _FolderState()
            for child_name in self._child_names(folder_path, folder_children[folder_path]):
                child_path = join_child(folder_path, child_name, self.root)
                child_state = states.get(child_path)
                if child_state is not None:
                    self._merge_folder(state, child_state)
                elif child_path in files:
                    self._merge_file(
                        state,
                        files[child_path],
                        coverage.get(child_path),
                        weights.get(child_path),
                    )
                else:
                    logger.debug("Unknown child %s of %s ignored", child_path, folder_path)
            states[folder_path] = state

        results = [self._finalize(snapshot, path, states[path]) for path in ordered]
        logger.info("Aggregated %d folders for snapshot %s", len(results), snapshot)
        return results

    # ── steps ────────────────────────────────────────────────────

    @staticmethod
    def _merge_folder(state: _FolderState, child: _FolderState) -> None:
        for key in SEVERITY_KEYS:
            state.maxima[key] = max(state.maxima[key], child.maxima[key])
            state.debt[key].merge(child.debt[key])

    def _merge_file(
        self,
        state: _FolderState,
        crit: FileCriticality,
        coverage: Optional[float],
        weight: Optional[float],
    ) -> None:
        effective = self.effective_weight(crit.file_path, coverage, weight)
        for key in SEVERITY_KEYS:
            level = crit.severity(key)
            state.maxima[key] = max(state.maxima[key], level)
            if level >= DEBT_SEVERITY_FLOOR and effective > 0:
                state.debt[key].add(effective, coverage or 0.0)

    def _finalize(self, snapshot: str, folder_path: str, state: _FolderState) -> FolderCriticality:
        levels = {key: state.maxima[key] for key in SEVERITY_KEYS if key != OVERALL}
        debt = {key: state.debt[key].finalize(self.precision) for key in SEVERITY_KEYS}
        return FolderCriticality(snapshot=snapshot, folder_path=folder_path, debt=debt, **levels)

    @staticmethod
    def _child_names(folder_path: str, raw) -> Iterable[str]:
        # A string here is an undecoded storage blob, not a list of names.
        if isinstance(raw, (Set, list, tuple)):
            return [str(name) for name in raw]
        if raw is not None:
            logger.warning("Unreadable children for folder %s; treating as empty", folder_path)
        return []


def _by_path(file_criticalities: FileCriticalities) -> dict[str, FileCriticality]:
    if isinstance(file_criticalities, Mapping):
        items = file_criticalities.values()
    else:
        items = file_criticalities
    return {normalize_path(c.file_path): c for c in items}
