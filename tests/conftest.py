"""Shared test fixtures for Debt Radar tests."""

import logging

import pytest

from debt_radar.criticality.models import FileCriticality
from debt_radar.ingestion.models import FileFactRecord
from debt_radar.persistence.database import RadarDB


def make_crit(path, snapshot="snap", **levels):
    """FileCriticality with LOW everywhere except the given dimensions."""
    return FileCriticality(snapshot=snapshot, file_path=path, **levels)


def make_fact(path, **kwargs):
    return FileFactRecord(file_path=path, **kwargs)


@pytest.fixture(autouse=True)
def reset_debt_radar_logger():
    """Drop handlers installed by setup_logging() so tests stay independent."""
    yield
    logger = logging.getLogger("debt_radar")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def crit():
    return make_crit


@pytest.fixture
def fact():
    return make_fact


@pytest.fixture
def db():
    """Connected in-memory results database."""
    with RadarDB(":memory:") as radar_db:
        yield radar_db


@pytest.fixture
def sample_records():
    """Small Go-style tree with a risky handler, a calm model and a test file."""
    return [
        FileFactRecord(
            file_path="service/api/handler.go",
            complexity=30,
            issues=2,
            churn_frequency=12,
            churn_authors=3,
            halstead_volume=90,
            coverage_percentage=50.0,
            lines_to_cover=40,
        ),
        FileFactRecord(
            file_path="service/model/user.go",
            complexity=5,
            coverage_percentage=90.0,
            lines_to_cover=60,
        ),
        FileFactRecord(
            file_path="service/api/handler_test.go",
            complexity=40,
            coverage_percentage=-1.0,
            lines_to_cover=80,
        ),
        FileFactRecord(file_path="main.go", complexity=2, coverage_percentage=0.0, lines_to_cover=5),
    ]


@pytest.fixture
def sample_loc():
    return {
        "service/api/handler.go": 100,
        "service/model/user.go": 100,
        "service/api/handler_test.go": 100,
        "main.go": 50,
    }

