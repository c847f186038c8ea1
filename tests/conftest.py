"""
Pytest fixtures for the challan test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on emitted JSON log lines
- Deterministic clock
- In-memory SQLite engine with all tables created
- Sample catalog rows and saved DC drafts
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from challan_catalog.codec import parse_catalog
from challan_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from challan_kernel.domain.challan import DcDraft, DcItem, DcItemSize
from challan_kernel.domain.clock import DeterministicClock
from challan_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture challan logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.create(draft)
            logs = captured_logs()
            assert any(r["message"] == "dc_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("challan")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-01-01 12:00 UTC until advanced."""
    return DeterministicClock()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    """Fresh in-memory SQLite database with every table created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    reset_engine()


# =============================================================================
# Catalog fixtures
# =============================================================================

THUMB = "https://drive.google.com/file/d/{}/view?usp=sharing"

CATALOG_ROWS = [
    [
        "Tibia Nailing",
        "Interlocking Nail {9mm:1, 10mm:2}|Locking Bolt {30mm:4}|End Cap",
        "Drill Bit 4.2|Guide Wire",
        "2|",
        "Nail Inserter|Reamer Set - 3",
        "Trauma",
        f"{THUMB.format('inserter')}|",
        f"|{THUMB.format('guidewire')}",
        f"{THUMB.format('nail')}||",
        "Store A|R1|B4||||Store A|R1|B5",
        "",
        "Store B|R2|B1",
    ],
    [
        "Hip Replacement",
        "Femoral Stem {12:1}|Acetabular Cup",
        "Bone Cement",
        "3",
        "Broach Handle|Nail Inserter",
        "Arthroplasty",
    ],
    ["DHS Plate", "DHS Plate 4hole,5hole,6hole", "", "", "Angle Guide", ""],
    ["", "Orphan Item", "", "", "", "Trauma"],
]


@pytest.fixture
def catalog_rows() -> list[list[str]]:
    return [list(row) for row in CATALOG_ROWS]


@pytest.fixture
def procedures(catalog_rows):
    return parse_catalog(catalog_rows)


# =============================================================================
# DC fixtures
# =============================================================================


@pytest.fixture
def draft() -> DcDraft:
    """A small pending DC draft."""
    return DcDraft(
        hospital_name="City Ortho Hospital",
        dc_no="DC-101",
        items=(
            DcItem(
                name="SS Interlocking Nail",
                sizes=(DcItemSize("9mm", 1), DcItemSize("10mm", 2)),
                procedure="Tibia Nailing",
                is_selectable=True,
            ),
            DcItem(
                name="SS Drill Bit 4.2",
                sizes=(DcItemSize("", 2),),
                procedure="Tibia Nailing",
                is_selectable=False,
            ),
        ),
        instruments=("Nail Inserter", "Reamer Set - 3"),
        box_numbers=("B-7",),
        received_by="Ravi",
        remarks="urgent",
    )


@pytest.fixture
def utc():
    def _utc(*args) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)
    return _utc
