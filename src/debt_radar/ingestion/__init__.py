"""Fact ingestion: immutable per-file records and the collector merge."""

from .collector import FactBundle, FactCollector
from .models import (
    COVERAGE_EXCLUDED,
    DEFAULT_TEST_FILE_PREFIXES,
    DEFAULT_TEST_FILE_SUFFIXES,
    FileFactRecord,
    StructuralKind,
    is_test_file,
)

__all__ = [
    "COVERAGE_EXCLUDED",
    "DEFAULT_TEST_FILE_PREFIXES",
    "DEFAULT_TEST_FILE_SUFFIXES",
    "FactBundle",
    "FactCollector",
    "FileFactRecord",
    "StructuralKind",
    "is_test_file",
]
