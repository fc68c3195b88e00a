"""
/api/pivotdata -- DAX generation, metadata, saved segments and compile history.
"""
from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from fastapi import APIRouter, Body, HTTPException, Query

from pivotdax.pivot.service import run_pivot
from pivotdax.pivot.slice import FilterClause, SliceDescriptor
from pivotdax.pivot.errors import CompileError
from pivotdax.pivot.catalog import load_catalog
from pivotdax.pivot.segments import get_segment_store
from pivotdax.db.compile_log import recent_compiles
from pivotdax.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()



class FilterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str | None = Field(None, alias="Field")
    members: list[str] | None = Field(None, alias="Members")


class PivotRequest(BaseModel):
    """Slice configuration as sent by the pivot front-end."""

    model_config = ConfigDict(populate_by_name=True)

    rows: list[str] | None = Field(None, alias="Rows")
    columns: list[str] | None = Field(None, alias="Columns")
    measures: list[str] | None = Field(None, alias="Measures")
    filters: list[FilterPayload] | None = Field(None, alias="Filters")
    execute: bool = Field(True, description="If true, run the DAX and return result rows")

    def to_slice(self) -> SliceDescriptor:
        return SliceDescriptor(
            rows=self.rows,
            columns=self.columns,
            measures=self.measures,
            filters=[FilterClause(field=f.field, members=f.members) for f in self.filters or []],
        )


class PivotResponse(BaseModel):
    dax: str
    data: list[dict[str, Any]]
    execution_error: str | None = None
    latency_ms: int


class MetadataResponse(BaseModel):
    dimensions: list[str]
    measures: list[str]


class SegmentRequest(BaseModel):
    name: str = Field("", validation_alias=AliasChoices("name", "Name"))
    dax: str = Field("", validation_alias=AliasChoices("dax", "Dax"))


class SegmentItem(BaseModel):
    name: str
    dax: str
    saved_at: float


class StatusResponse(BaseModel):
    status: str



@router.post("/data", response_model=PivotResponse)
def pivot_data_endpoint(req: PivotRequest | None = Body(None)):
    """Slice -> DAX, plus result rows from the configured executor.

    A missing or null body reaches the compiler as an absent slice and is
    rejected with 400 like any other invalid slice.
    """
    try:
        if req is None:
            result = run_pivot(None)
        else:
            result = run_pivot(req.to_slice(), execute=req.execute)
    except CompileError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("Pivot request failed")
        raise HTTPException(status_code=500, detail=str(exc))

    return PivotResponse(
        dax=result.dax,
        data=result.rows,
        execution_error=result.execution_error,
        latency_ms=result.latency_ms,
    )


@router.get("/metadata", response_model=MetadataResponse)
def metadata_endpoint() -> MetadataResponse:
    """Return the field and measure references offered to the pivot UI."""
    catalog = load_catalog()
    return MetadataResponse(
        dimensions=catalog.get_dimension_names(),
        measures=catalog.get_measure_names(),
    )


@router.post("/segment", response_model=StatusResponse)
def save_segment_endpoint(req: SegmentRequest):
    """Save a named DAX query."""
    try:
        get_segment_store().save(req.name, req.dax)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return StatusResponse(status="Segment saved.")


@router.get("/segments", response_model=list[SegmentItem])
def list_segments_endpoint() -> list[SegmentItem]:
    return [
        SegmentItem(name=s.name, dax=s.dax, saved_at=s.saved_at)
        for s in get_segment_store().list()
    ]


@router.get("/history")
def history_endpoint(limit: int = Query(50, ge=1, le=500)) -> dict:
    """Return the most recent compile requests from the audit log."""
    try:
        return {"history": recent_compiles(limit)}
    except Exception as exc:
        logger.exception("Reading compile history failed")
        raise HTTPException(status_code=503, detail=str(exc))
