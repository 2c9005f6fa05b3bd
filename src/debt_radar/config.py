"""Configuration loading and management for Debt Radar.

Configuration sources are merged in priority order:
    1. Defaults (defined in EngineConfig)
    2. Global config (~/.debt-radar.toml)
    3. Project config (./debt-radar.toml)
    4. Explicit config file
    5. Environment variables (DEBT_RADAR_* prefix)
    6. Keyword overrides

Example:
    >>> config = load_config(debt_precision=2)
    >>> config.debt_precision
    2

Threshold tables live under ``[thresholds.<dimension>]``::

    [thresholds.complexity]
    critical = 0.30
    high = 0.20
    medium = 0.10
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, get_type_hints

from .criticality.classifier import DEFAULT_DENSITY_THRESHOLDS, DensityThresholds
from .criticality.models import Dimension
from .exceptions import ConfigurationError, InvalidConfigError, InvalidPathError
from .hierarchy.models import ROOT
from .ingestion.models import (
    COVERAGE_EXCLUDED,
    DEFAULT_TEST_FILE_PREFIXES,
    DEFAULT_TEST_FILE_SUFFIXES,
    is_test_file,
)

Verbosity = Literal["quiet", "normal", "verbose"]

_ENV_PREFIX = "DEBT_RADAR_"


@dataclass(frozen=True)
class ThresholdConfig:
    """One density threshold table per quality dimension.

    Defaults follow the SonarQube rating bands. Halstead is absolute: the raw
    volume is compared, not a density.
    """

    complexity: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.COMPLEXITY]
    coupling: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.COUPLING]
    issues: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.ISSUES]
    churn: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.CHURN]
    authors: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.AUTHORS]
    halstead: DensityThresholds = DEFAULT_DENSITY_THRESHOLDS[Dimension.HALSTEAD]

    def as_mapping(self) -> dict[Dimension, DensityThresholds]:
        return {dim: getattr(self, dim.value) for dim in Dimension}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ThresholdConfig":
        """Build from a ``[thresholds]`` table; unspecified tiers keep defaults."""
        tables: dict[str, DensityThresholds] = {}
        for name, values in raw.items():
            try:
                dim = Dimension(name)
            except ValueError:
                raise InvalidConfigError(f"thresholds.{name}", values, "unknown dimension")
            if not isinstance(values, Mapping):
                raise InvalidConfigError(f"thresholds.{name}", values, "expected a table")

            base = DEFAULT_DENSITY_THRESHOLDS[dim]
            try:
                tables[name] = DensityThresholds(
                    critical=float(values.get("critical", base.critical)),
                    high=float(values.get("high", base.high)),
                    medium=float(values.get("medium", base.medium)),
                    absolute=bool(values.get("absolute", base.absolute)),
                )
            except (TypeError, ValueError) as e:
                raise InvalidConfigError(f"thresholds.{name}", dict(values), str(e))
        return cls(**tables)


DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for one criticality run.

    Attributes:
        thresholds: Per-dimension density tables.
        test_file_suffixes: Path suffixes marking test/spec files.
        test_file_prefixes: Basename prefixes marking test files.
        coverage_excluded: Coverage sentinel for excluded/test files.
        debt_precision: Decimal places kept in debt-coverage percentages.
        root_path: Root sentinel of the folder tree.
        accumulate_totals: Sum additive facts into folder totals.
        validate_facts: Reject impossible fact values instead of passing them on.
        db_path: SQLite database for persisted results.
        verbosity: Logging verbosity level.
    """

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    test_file_suffixes: tuple[str, ...] = DEFAULT_TEST_FILE_SUFFIXES
    test_file_prefixes: tuple[str, ...] = DEFAULT_TEST_FILE_PREFIXES
    coverage_excluded: float = COVERAGE_EXCLUDED
    debt_precision: int = 1
    root_path: str = ROOT
    accumulate_totals: bool = True
    validate_facts: bool = False
    db_path: str = "repositories.db"
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        if self.debt_precision < 0:
            raise InvalidConfigError("debt_precision", self.debt_precision, "must be non-negative")
        if 0.0 <= self.coverage_excluded <= 100.0:
            raise InvalidConfigError(
                "coverage_excluded", self.coverage_excluded, "must lie outside [0, 100]"
            )
        if not self.root_path:
            raise InvalidConfigError("root_path", self.root_path, "must not be empty")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    def is_test_file(self, file_path: str) -> bool:
        return is_test_file(file_path, self.test_file_suffixes, self.test_file_prefixes)


def load_config(config_file: Optional[Path] = None, **overrides) -> EngineConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from the caller's own settings)

    Returns:
        Validated EngineConfig instance

    Raises:
        ConfigurationError: If a config file is unreadable or missing
        InvalidConfigError: If a value is out of range
    """
    merged: dict = {}

    global_config = Path.home() / ".debt-radar.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "debt-radar.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise InvalidPathError(config_file, "config file not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    thresholds = merged.pop("thresholds", None)
    if isinstance(thresholds, Mapping):
        merged["thresholds"] = ThresholdConfig.from_dict(thresholds)
    elif isinstance(thresholds, ThresholdConfig):
        merged["thresholds"] = thresholds

    # TOML arrays arrive as lists
    for key in ("test_file_suffixes", "test_file_prefixes"):
        if key in merged and isinstance(merged[key], (list, tuple)):
            merged[key] = tuple(str(s) for s in merged[key])

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigurationError(
            "Invalid configuration: unknown keys", details={"keys": ", ".join(unknown)}
        )

    return EngineConfig(**merged)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from DEBT_RADAR_* environment variables.

    Supported environment variables:
        DEBT_RADAR_DEBT_PRECISION: int
        DEBT_RADAR_COVERAGE_EXCLUDED: float
        DEBT_RADAR_ROOT_PATH: str
        DEBT_RADAR_ACCUMULATE_TOTALS: bool (true/false/1/0)
        DEBT_RADAR_VALIDATE_FACTS: bool
        DEBT_RADAR_DB_PATH: str
        DEBT_RADAR_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any DEBT_RADAR_* vars found.
    """
    type_hints = get_type_hints(EngineConfig)
    result: dict[str, Any] = {}

    for f in fields(EngineConfig):
        env_key = f"{_ENV_PREFIX}{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(f.name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(f.name, env_value, f"{env_key}: {e}")
        if parsed is not None:
            result[f.name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Tuple and nested-config fields are not settable from the environment
    and parse to None.
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return the parsed dict.

    Raises:
        ConfigurationError: If TOML support is missing or parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
