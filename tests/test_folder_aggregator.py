"""Tests for the bottom-up folder rollup."""

import itertools
import random

import pytest

from debt_radar.criticality.folders import DebtAccumulator, FolderAggregator
from debt_radar.criticality.models import SEVERITY_KEYS, FileCriticality, SeverityLevel
from debt_radar.hierarchy import ROOT, build_hierarchy
from debt_radar.ingestion.models import COVERAGE_EXCLUDED, FileFactRecord, is_test_file

LOW = SeverityLevel.LOW
MEDIUM = SeverityLevel.MEDIUM
HIGH = SeverityLevel.HIGH
CRITICAL = SeverityLevel.CRITICAL


def _children_for(paths):
    return build_hierarchy([FileFactRecord(file_path=p) for p in paths]).children


def _by_path(results):
    return {r.folder_path: r for r in results}


def _reference_max(folder, crits, key):
    """Brute force: max over every file whose path lies below ``folder``."""
    prefix = "" if folder == ROOT else folder + "/"
    levels = [c.severity(key) for p, c in crits.items() if p.startswith(prefix)]
    return max(levels, default=LOW)


def _random_tree(seed, n_files=60):
    rng = random.Random(seed)
    names = ["a", "b", "c", "d"]
    crits = {}
    coverage = {}
    weights = {}
    for i in range(n_files):
        depth = rng.randint(0, 4)
        path = "/".join(rng.choice(names) for _ in range(depth))
        path = f"{path}/f{i}.go" if path else f"f{i}.go"
        levels = {k: rng.choice(list(SeverityLevel)) for k in SEVERITY_KEYS if k != "overall"}
        crits[path] = FileCriticality(snapshot="s", file_path=path, **levels)
        coverage[path] = rng.choice([COVERAGE_EXCLUDED, 0.0, 33.3, 50.0, 87.5, 100.0])
        weights[path] = rng.choice([0, 5, 12, 40, 100])
    return crits, coverage, weights


class TestConcreteCases:
    def test_debt_uses_only_high_plus_files(self, crit):
        # A is CRITICAL (weight 40, 50%), B is LOW (weight 60, 90%): only A counts.
        crits = [crit("F/a.go", complexity=CRITICAL), crit("F/b.go", complexity=LOW)]
        results = FolderAggregator().aggregate(
            "s",
            crits,
            {"F/a.go": 50.0, "F/b.go": 90.0},
            {"F/a.go": 40, "F/b.go": 60},
            _children_for(["F/a.go", "F/b.go"]),
        )
        folder = _by_path(results)["F"]
        assert folder.debt["complexity"] == 50.0
        assert folder.complexity is CRITICAL

    def test_root_reflects_top_level_file(self, crit):
        crits = [crit("main.go", churn=HIGH, issues=MEDIUM)]
        children = _children_for(["main.go"])
        assert children == {ROOT: {"main.go"}}

        root = _by_path(FolderAggregator().aggregate("s", crits, {}, {}, children))[ROOT]
        assert root.churn is HIGH
        assert root.issues is MEDIUM
        assert root.overall is HIGH

    def test_weighted_average_over_two_files(self, crit):
        crits = [crit("p/a.go", issues=HIGH), crit("p/b.go", issues=CRITICAL)]
        results = FolderAggregator().aggregate(
            "s",
            crits,
            {"p/a.go": 20.0, "p/b.go": 80.0},
            {"p/a.go": 30, "p/b.go": 10},
            _children_for(["p/a.go", "p/b.go"]),
        )
        # (30*0.2 + 10*0.8) / 40 * 100 = 35.0
        assert _by_path(results)["p"].debt["issues"] == 35.0

    def test_debt_propagates_through_folders(self, crit):
        crits = [crit("a/b/c/deep.go", authors=CRITICAL), crit("a/top.go", authors=HIGH)]
        results = _by_path(
            FolderAggregator().aggregate(
                "s",
                crits,
                {"a/b/c/deep.go": 10.0, "a/top.go": 70.0},
                {"a/b/c/deep.go": 50, "a/top.go": 50},
                _children_for(["a/b/c/deep.go", "a/top.go"]),
            )
        )
        assert results["a/b/c"].debt["authors"] == 10.0
        assert results["a/b"].debt["authors"] == 10.0
        # (50*0.1 + 50*0.7) / 100 * 100
        assert results["a"].debt["authors"] == 40.0
        assert results[ROOT].debt["authors"] == 40.0

    def test_folder_merges_raw_sums_not_rounded_averages(self, crit):
        # Averaging the children's rounded percentages would give 50.0.
        crits = [crit("x/a.go", coupling=HIGH), crit("y/b.go", coupling=HIGH)]
        results = _by_path(
            FolderAggregator().aggregate(
                "s",
                crits,
                {"x/a.go": 100.0, "y/b.go": 0.0},
                {"x/a.go": 3, "y/b.go": 1},
                _children_for(["x/a.go", "y/b.go"]),
            )
        )
        assert results[ROOT].debt["coupling"] == 75.0


class TestDebtNull:
    def test_no_high_files_means_absent_not_zero(self, crit):
        crits = [crit("p/a.go", complexity=MEDIUM)]
        folder = _by_path(
            FolderAggregator().aggregate(
                "s", crits, {"p/a.go": 0.0}, {"p/a.go": 100}, _children_for(["p/a.go"])
            )
        )["p"]
        assert all(value is None for value in folder.debt.values())

    def test_zero_weight_contributes_nothing(self, crit):
        crits = [crit("p/a.go", complexity=CRITICAL)]
        folder = _by_path(
            FolderAggregator().aggregate(
                "s", crits, {"p/a.go": 40.0}, {"p/a.go": 0}, _children_for(["p/a.go"])
            )
        )["p"]
        assert folder.complexity is CRITICAL
        assert folder.debt["complexity"] is None

    def test_missing_weight_contributes_nothing(self, crit):
        crits = [crit("p/a.go", complexity=CRITICAL)]
        folder = _by_path(
            FolderAggregator().aggregate("s", crits, {"p/a.go": 40.0}, {}, _children_for(["p/a.go"]))
        )["p"]
        assert folder.debt["complexity"] is None

    def test_excluded_coverage_forces_zero_weight(self, crit):
        crits = [crit("p/a.go", halstead=CRITICAL)]
        folder = _by_path(
            FolderAggregator().aggregate(
                "s",
                crits,
                {"p/a.go": COVERAGE_EXCLUDED},
                {"p/a.go": 500},
                _children_for(["p/a.go"]),
            )
        )["p"]
        assert folder.halstead is CRITICAL
        assert folder.debt["halstead"] is None

    def test_test_files_force_zero_weight(self, crit):
        crits = [crit("p/a_test.go", halstead=CRITICAL)]
        aggregator = FolderAggregator(is_test_file=is_test_file)
        folder = _by_path(
            aggregator.aggregate(
                "s", crits, {"p/a_test.go": 30.0}, {"p/a_test.go": 10}, _children_for(["p/a_test.go"])
            )
        )["p"]
        assert folder.debt["halstead"] is None

    def test_missing_coverage_counts_as_zero(self, crit):
        crits = [crit("p/a.go", churn=HIGH)]
        folder = _by_path(
            FolderAggregator().aggregate("s", crits, {}, {"p/a.go": 10}, _children_for(["p/a.go"]))
        )["p"]
        assert folder.debt["churn"] == 0.0


class TestRollupProperties:
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_transitive_max_matches_brute_force(self, seed):
        crits, coverage, weights = _random_tree(seed)
        children = _children_for(crits)
        results = FolderAggregator().aggregate("s", crits, coverage, weights, children)

        assert {r.folder_path for r in results} == set(children)
        for folder in results:
            for key in SEVERITY_KEYS:
                assert folder.severity(key) is _reference_max(folder.folder_path, crits, key)

    @pytest.mark.parametrize("seed", [11, 12, 13])
    def test_overall_is_max_of_dimensions(self, seed):
        crits, coverage, weights = _random_tree(seed)
        results = FolderAggregator().aggregate("s", crits, coverage, weights, _children_for(crits))
        for folder in results:
            dims = [folder.severity(k) for k in SEVERITY_KEYS if k != "overall"]
            assert folder.overall is max(dims)

    @pytest.mark.parametrize("seed", [21, 22, 23])
    def test_child_order_does_not_matter(self, seed):
        crits, coverage, weights = _random_tree(seed)
        children = _children_for(crits)
        baseline = _by_path(FolderAggregator().aggregate("s", crits, coverage, weights, children))

        rng = random.Random(seed)
        shuffled = {}
        for folder in rng.sample(list(children), len(children)):
            names = list(children[folder])
            rng.shuffle(names)
            shuffled[folder] = names
        permuted = _by_path(FolderAggregator().aggregate("s", crits, coverage, weights, shuffled))

        assert permuted == baseline

    def test_debt_rounding_is_order_independent(self, crit):
        # Float sums of these contributions differ by order near a rounding edge.
        coverage = {"p/a.go": 32.21, "p/b.go": 32.77, "p/c.go": 33.33}
        weights = {"p/a.go": 1, "p/b.go": 10, "p/c.go": 13}
        crits = [crit(path, complexity=CRITICAL) for path in coverage]

        outcomes = set()
        for order in itertools.permutations(["a.go", "b.go", "c.go"]):
            results = FolderAggregator().aggregate(
                "s", crits, coverage, weights, {ROOT: ["p"], "p": list(order)}
            )
            outcomes.add(_by_path(results)["p"].debt["complexity"])

        assert len(outcomes) == 1

    def test_idempotent(self):
        crits, coverage, weights = _random_tree(99)
        children = _children_for(crits)
        aggregator = FolderAggregator()
        first = aggregator.aggregate("s", crits, coverage, weights, children)
        second = aggregator.aggregate("s", crits, coverage, weights, children)
        assert first == second

    def test_deepest_folders_first(self):
        crits, coverage, weights = _random_tree(7)
        results = FolderAggregator().aggregate("s", crits, coverage, weights, _children_for(crits))
        depths = [0 if r.folder_path == ROOT else r.folder_path.count("/") + 1 for r in results]
        assert depths == sorted(depths, reverse=True)
        assert results[-1].folder_path == ROOT


class TestDegenerateInputs:
    def test_empty_hierarchy(self, crit):
        assert FolderAggregator().aggregate("s", [crit("a.go")], {}, {}, {}) == []

    def test_unreadable_children_treated_as_empty(self, crit):
        children = {ROOT: {"p"}, "p": "not-a-json-list"}
        results = _by_path(
            FolderAggregator().aggregate("s", [crit("p/a.go", issues=CRITICAL)], {}, {}, children)
        )
        assert results["p"].issues is LOW
        assert results[ROOT].issues is LOW

    def test_unknown_children_ignored(self, crit):
        children = {ROOT: {"ghost.go", "real.go"}}
        results = _by_path(
            FolderAggregator().aggregate("s", [crit("real.go", churn=HIGH)], {}, {}, children)
        )
        assert results[ROOT].churn is HIGH

    def test_folder_with_no_files_is_low(self):
        results = _by_path(FolderAggregator().aggregate("s", [], {}, {}, {ROOT: set()}))
        assert results[ROOT].overall is LOW
        assert results[ROOT].debt["overall"] is None

    def test_mapping_input_and_unnormalized_paths(self, crit):
        crits = {"./p/a.go": crit("./p/a.go", issues=HIGH)}
        results = _by_path(
            FolderAggregator().aggregate(
                "s", crits, {"./p/a.go": 60.0}, {"./p/a.go": 10}, _children_for(["p/a.go"])
            )
        )
        assert results["p"].issues is HIGH
        assert results["p"].debt["issues"] == 60.0


class TestDebtAccumulator:
    def test_finalize_empty_is_none(self):
        assert DebtAccumulator().finalize() is None

    def test_round_to_one_decimal(self):
        acc = DebtAccumulator()
        acc.add(3, 33.333)
        assert acc.finalize() == 33.3

    def test_merge_is_additive(self):
        a = DebtAccumulator()
        a.add(10, 50.0)
        b = DebtAccumulator()
        b.add(30, 10.0)
        a.merge(b)
        assert a.total_lines == 40
        assert a.weighted_sum == pytest.approx(8.0)
