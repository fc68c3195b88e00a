"""
Integration tests -- compile audit log against the configured database.

Runs against the throwaway SQLite file set up in conftest.py, or any
DATABASE_URL you point it at.  Skipped when the database is unreachable.
"""
from __future__ import annotations

import pytest
from sqlalchemy import text

try:
    from pivotdax.db.connection import get_engine

    engine = get_engine()
    with engine.connect() as _conn:
        _conn.execute(text("SELECT 1"))
    DB_AVAILABLE = True
except Exception:
    DB_AVAILABLE = False

pytestmark = pytest.mark.skipif(not DB_AVAILABLE, reason="Audit database not reachable")

from pivotdax.db.compile_log import ensure_log_table, log_compile, recent_compiles


def _count() -> int:
    with get_engine().connect() as conn:
        return conn.execute(text("SELECT COUNT(*) FROM pivot_compile_logs")).scalar()


def test_ensure_log_table_idempotent():
    """Calling ensure_log_table() multiple times must not raise."""
    ensure_log_table()
    ensure_log_table()


def test_log_compile_inserts_row():
    ensure_log_table()
    before = _count()

    log_compile(
        slice_={"rows": ["Region"], "columns": [], "measures": ["Profit"], "filters": []},
        dax="EVALUATE SUMMARIZECOLUMNS('Region', \"Profit\", [Profit])",
        row_count=3,
        compile_ok=True,
        error=None,
        latency_ms=4,
    )

    assert _count() == before + 1


def test_recent_compiles_decodes_json():
    ensure_log_table()
    log_compile(
        slice_={
            "rows": ["Region"],
            "columns": ["Date[Month]"],
            "measures": [],
            "filters": [{"field": "Customer[Segment]", "members": ("SMB", "Enterprise")}],
        },
        dax="EVALUATE ...",
        row_count=0,
        compile_ok=True,
        error=None,
        latency_ms=1,
    )

    row = recent_compiles(1)[0]
    assert row["rows"] == ["Region"]
    assert row["columns"] == ["Date[Month]"]
    assert row["measures"] == []
    assert row["filters"] == [{"field": "Customer[Segment]", "members": ["SMB", "Enterprise"]}]
    assert row["compile_ok"] is True
    assert row["created_at"]


def test_log_compile_records_failure():
    ensure_log_table()
    log_compile(
        slice_=None,
        dax="",
        row_count=0,
        compile_ok=False,
        error="Slice is missing",
        latency_ms=0,
    )

    row = recent_compiles(1)[0]
    assert row["compile_ok"] is False
    assert row["error"] == "Slice is missing"
    assert row["dax"] is None
    assert row["rows"] == []


def test_recent_compiles_newest_first():
    ensure_log_table()
    for marker in ("first", "second"):
        log_compile(
            slice_={"rows": [marker], "columns": [], "measures": [], "filters": []},
            dax=f"EVALUATE SUMMARIZECOLUMNS('{marker}')",
            row_count=0,
            compile_ok=True,
            error=None,
            latency_ms=0,
        )
    rows = recent_compiles(2)
    assert [r["rows"] for r in rows] == [["second"], ["first"]]
