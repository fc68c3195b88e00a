"""
SliceDescriptor -- the pivot widget's current selection of rows, columns,
measures and filters, normalised for the DAX compiler.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pivotdax.core.utils import dedupe


class FilterClause(BaseModel):
    """Restricts one field to a set of member values."""

    model_config = ConfigDict(frozen=True)

    field: str = Field("", description="Field reference, e.g. 'Customer[Segment]'")
    members: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Allowed member values; an empty set filters nothing",
    )

    @field_validator("field", mode="before")
    @classmethod
    def _none_field(cls, v):
        return "" if v is None else v

    @field_validator("members", mode="before")
    @classmethod
    def _ordered_set(cls, v):
        if v is None:
            return ()
        return dedupe(v)


class SliceDescriptor(BaseModel):
    """Immutable input to :func:`pivotdax.pivot.dax_generator.compile_slice`."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[str, ...] = Field(default_factory=tuple, description="Row field references")
    columns: tuple[str, ...] = Field(default_factory=tuple, description="Column field references")
    measures: tuple[str, ...] = Field(default_factory=tuple, description="Measure references")
    filters: tuple[FilterClause, ...] = Field(default_factory=tuple, description="Report filters")

    @field_validator("rows", "columns", "measures", "filters", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return () if v is None else v
