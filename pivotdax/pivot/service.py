"""
Pivot service -- orchestrates compile -> execute -> audit log.

The compiler is pure; everything with side effects (query execution, the
audit table) lives here so request handlers, the CLI and the UI share one
pipeline.  Compile errors propagate to the caller; execution errors are
reported on the result alongside the DAX that was produced.
"""
from __future__ import annotations

from contextlib import closing
from typing import Any

from pivotdax.pivot.slice import SliceDescriptor
from pivotdax.pivot.dax_generator import compile_slice
from pivotdax.pivot.errors import CompileError
from pivotdax.pivot.executor import QueryExecutor, get_executor
from pivotdax.db.compile_log import ensure_log_table, log_compile
from pivotdax.core.utils import timer
from pivotdax.core.logging import get_logger

logger = get_logger(__name__)

# Ensure the log table exists at import time (idempotent CREATE IF NOT EXISTS)
try:
    ensure_log_table()
except Exception:
    logger.warning("Could not ensure compile log table (DB may not be available)")


class PivotResult:
    def __init__(
        self,
        slice_: SliceDescriptor,
        dax: str,
        rows: list[dict[str, Any]],
        latency_ms: int = 0,
        execution_error: str | None = None,
    ):
        self.slice = slice_
        self.dax = dax
        self.rows = rows
        self.latency_ms = latency_ms
        self.execution_error = execution_error

    @property
    def success(self) -> bool:
        return self.execution_error is None


def _audit(slice_: SliceDescriptor | None, dax: str, row_count: int,
           compile_ok: bool, error: str | None, latency_ms: int) -> None:
    # Fire-and-forget -- never block the response
    try:
        log_compile(
            slice_=slice_.model_dump() if slice_ is not None else None,
            dax=dax,
            row_count=row_count,
            compile_ok=compile_ok,
            error=error,
            latency_ms=latency_ms,
        )
    except Exception:
        logger.warning("Audit log write failed -- continuing")


def _execute(executor: QueryExecutor, dax: str) -> tuple[list[dict[str, Any]], str | None]:
    try:
        return executor.execute(dax), None
    except Exception as exc:
        logger.exception("DAX execution failed")
        return [], f"Execution error: {exc}"


def run_pivot(
    slice_: SliceDescriptor | None,
    execute: bool = True,
    executor: QueryExecutor | None = None,
) -> PivotResult:
    """Compile *slice_* to DAX and, optionally, run it.

    Parameters
    ----------
    slice_ : SliceDescriptor | None
        The pivot selection.  ``None`` is rejected by the compiler.
    execute : bool
        If True, hand the DAX to *executor* and attach the returned rows.
    executor : QueryExecutor | None
        Defaults to the backend configured by ``EXECUTOR_BACKEND``.  A default
        executor is closed after the call; a caller-supplied one is left open.

    Raises
    ------
    CompileError
        If the slice cannot be compiled.  Nothing is executed in that case.
    """
    rows: list[dict[str, Any]] = []
    exec_error: str | None = None

    with timer() as t:
        try:
            dax = compile_slice(slice_)
        except CompileError as exc:
            logger.info("Compile rejected: %s", exc)
            compile_failure = exc
        else:
            compile_failure = None
            if execute:
                if executor is None:
                    with closing(get_executor()) as owned:
                        rows, exec_error = _execute(owned, dax)
                else:
                    rows, exec_error = _execute(executor, dax)

    if compile_failure is not None:
        _audit(slice_, "", 0, False, str(compile_failure), t["elapsed_ms"])
        raise compile_failure

    _audit(slice_, dax, len(rows), True, exec_error, t["elapsed_ms"])
    return PivotResult(
        slice_=slice_,
        dax=dax,
        rows=rows,
        latency_ms=t["elapsed_ms"],
        execution_error=exec_error,
    )
