"""
DAX Generator — turns a pivot SliceDescriptor into an evaluable DAX query.

The output has one of two shapes:

    EVALUATE SUMMARIZECOLUMNS('Row', 'Col', "Measure", [Measure])

    EVALUATE CALCULATETABLE(
      SUMMARIZECOLUMNS(...),
      FILTER(ALL('Field'), 'Field' IN {'a', 'b'})
    )

Field and measure references are opaque tokens: they are quoted as-is and
never parsed, escaped or checked against the catalog.
"""
from __future__ import annotations

from pivotdax.pivot.errors import InvalidInput, MalformedFilter
from pivotdax.pivot.slice import FilterClause, SliceDescriptor
from pivotdax.core.logging import get_logger

logger = get_logger(__name__)

_INDENT = "  "
_FIELD_QUOTES = ("'", '"')
_MEASURE_QUOTES = ('"', "]")


# ── Token quoting ────────────────────────────────────────

def quote_field(ref: str) -> str:
    """Field reference in single quotes: 'Date[Month]'."""
    return f"'{ref}'"


def measure_pair(ref: str) -> str:
    """Labelled measure column: "Sales Amount", [Sales Amount]."""
    return f'"{ref}", [{ref}]'


def filter_clause(clause: FilterClause) -> str:
    """Membership restriction of one field to its member set."""
    members = ", ".join(f"'{m}'" for m in clause.members)
    field = quote_field(clause.field)
    return f"FILTER(ALL({field}), {field} IN {{{members}}})"


# ── Validation ───────────────────────────────────────────

def _validate(slice_: SliceDescriptor | None) -> None:
    if slice_ is None:
        raise InvalidInput("Slice is missing")
    if not slice_.rows and not slice_.measures:
        raise InvalidInput("Slice must select at least one row field or measure")
    for i, f in enumerate(slice_.filters):
        if f.members and not f.field:
            raise MalformedFilter(i)


def _warn_on_quotes(slice_: SliceDescriptor) -> None:
    # References are embedded verbatim; quote characters can break the query text.
    refs = [*slice_.rows, *slice_.columns]
    for f in slice_.filters:
        if f.members:
            refs += [f.field, *f.members]
    suspicious = [r for r in refs if any(ch in r for ch in _FIELD_QUOTES)]
    suspicious += [m for m in slice_.measures if any(ch in m for ch in _MEASURE_QUOTES)]
    for ref in suspicious:
        logger.warning("Reference %r contains quote characters -- embedded unescaped", ref)


# ── Compiler ─────────────────────────────────────────────

def compile_slice(slice_: SliceDescriptor | None) -> str:
    """Compile a pivot slice into a DAX query string.

    Raises
    ------
    InvalidInput
        If the slice is missing or has neither rows nor measures.
    MalformedFilter
        If a filter has members but an empty field.
    """
    _validate(slice_)
    _warn_on_quotes(slice_)

    args = [quote_field(f) for f in (*slice_.rows, *slice_.columns)]
    args += [measure_pair(m) for m in slice_.measures]
    table = f"SUMMARIZECOLUMNS({', '.join(args)})"

    clauses = [filter_clause(f) for f in slice_.filters if f.members]
    if clauses:
        sep = ",\n" + _INDENT
        table = f"CALCULATETABLE(\n{_INDENT}{table}{sep}{sep.join(clauses)}\n)"

    dax = f"EVALUATE {table}"
    logger.debug("Generated DAX:\n%s", dax)
    return dax
