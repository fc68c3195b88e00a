"""
Compile audit log -- records every slice -> DAX compilation and its outcome.

The table is created automatically on first use via `ensure_log_table()`.
"""
from __future__ import annotations

import json
from typing import Any

from sqlalchemy import text

from pivotdax.db.connection import get_engine
from pivotdax.core.logging import get_logger

logger = get_logger(__name__)

_TABLE = "pivot_compile_logs"

_CREATE_SQL = f"""
CREATE TABLE IF NOT EXISTS {_TABLE} (
    id              INTEGER PRIMARY KEY,
    rows_json       TEXT,          -- JSON array
    columns_json    TEXT,          -- JSON array
    measures_json   TEXT,          -- JSON array
    filters_json    TEXT,          -- JSON array of {{field, members}}
    dax             TEXT,
    row_count       INTEGER,
    compile_ok      BOOLEAN NOT NULL DEFAULT TRUE,
    error           TEXT,
    latency_ms      INTEGER,
    created_at      TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

_JSON_COLUMNS = ("rows_json", "columns_json", "measures_json", "filters_json")


def ensure_log_table() -> None:
    """Create the compile log table if it doesn't exist."""
    engine = get_engine()
    with engine.connect() as conn:
        conn.execute(text(_CREATE_SQL))
        conn.commit()
    logger.info("Compile log table '%s' ensured", _TABLE)


def log_compile(
    slice_: dict[str, Any] | None,
    dax: str,
    row_count: int,
    compile_ok: bool,
    error: str | None,
    latency_ms: int,
) -> None:
    """Insert one row into the compile log table."""
    engine = get_engine()
    insert_sql = text(f"""
        INSERT INTO {_TABLE}
            (rows_json, columns_json, measures_json, filters_json,
             dax, row_count, compile_ok, error, latency_ms)
        VALUES
            (:rows_json, :columns_json, :measures_json, :filters_json,
             :dax, :row_count, :compile_ok, :error, :latency_ms)
    """)

    params = {
        "rows_json": json.dumps(list(slice_.get("rows", []))) if slice_ else None,
        "columns_json": json.dumps(list(slice_.get("columns", []))) if slice_ else None,
        "measures_json": json.dumps(list(slice_.get("measures", []))) if slice_ else None,
        "filters_json": json.dumps(
            [{"field": f["field"], "members": list(f["members"])} for f in slice_.get("filters", [])]
        ) if slice_ else None,
        "dax": dax or None,
        "row_count": row_count,
        "compile_ok": compile_ok,
        "error": error,
        "latency_ms": latency_ms,
    }

    with engine.connect() as conn:
        conn.execute(insert_sql, params)
        conn.commit()
    logger.debug("Compile logged: ok=%s", compile_ok)


def recent_compiles(limit: int = 50) -> list[dict[str, Any]]:
    """Return the newest log rows first, JSON columns decoded."""
    engine = get_engine()
    with engine.connect() as conn:
        result = conn.execute(
            text(f"SELECT * FROM {_TABLE} ORDER BY id DESC LIMIT :limit"),
            {"limit": int(limit)},
        )
        rows = [dict(r._mapping) for r in result.fetchall()]

    for row in rows:
        for col in _JSON_COLUMNS:
            raw = row.pop(col)
            row[col.removesuffix("_json")] = json.loads(raw) if raw else []
        row["compile_ok"] = bool(row["compile_ok"])
        if row.get("created_at") is not None and not isinstance(row["created_at"], str):
            row["created_at"] = row["created_at"].isoformat()
    return rows
