"""
Command-line DAX compiler.

    pivotdax-compile --row "Region" --measure "Units Sold" \
        --filter "Customer[Segment]=Enterprise,SMB"

    pivotdax-compile --slice slice.json      # same JSON shape as POST /data
    echo '{"Rows": ["Region"]}' | pivotdax-compile --slice -
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from pivotdax.core.logging import route_logs_to
from pivotdax.pivot.dax_generator import compile_slice
from pivotdax.pivot.errors import CompileError
from pivotdax.pivot.slice import FilterClause, SliceDescriptor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pivotdax-compile",
        description="Compile a pivot slice (rows, columns, measures, filters) into a DAX query.",
    )
    parser.add_argument("--slice", metavar="FILE", help="JSON slice file in the API wire shape; '-' reads stdin.")
    parser.add_argument("--row", action="append", default=[], help="Row field reference (repeatable).")
    parser.add_argument("--column", action="append", default=[], help="Column field reference (repeatable).")
    parser.add_argument("--measure", action="append", default=[], help="Measure reference (repeatable).")
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="FIELD=M1,M2",
        help="Restrict FIELD to the comma-separated members (repeatable).",
    )
    return parser


def _pick(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def slice_from_payload(payload: dict[str, Any]) -> SliceDescriptor:
    """Accepts both the wire casing (Rows, Filters[].Field) and snake_case."""
    if not isinstance(payload, dict):
        raise ValueError("slice JSON must be an object")
    filters = []
    for f in _pick(payload, "Filters", "filters") or []:
        if not isinstance(f, dict):
            raise ValueError("each filter in the slice JSON must be an object")
        filters.append(FilterClause(field=_pick(f, "Field", "field"), members=_pick(f, "Members", "members")))
    return SliceDescriptor(
        rows=_pick(payload, "Rows", "rows"),
        columns=_pick(payload, "Columns", "columns"),
        measures=_pick(payload, "Measures", "measures"),
        filters=filters,
    )


def parse_filter(arg: str) -> FilterClause:
    field, sep, members = arg.partition("=")
    if not sep:
        raise ValueError(f"Filter '{arg}' must look like FIELD=member1,member2")
    return FilterClause(field=field, members=[m for m in members.split(",") if m])


def slice_from_args(args: argparse.Namespace) -> SliceDescriptor:
    return SliceDescriptor(
        rows=args.row,
        columns=args.column,
        measures=args.measure,
        filters=[parse_filter(f) for f in args.filter],
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    route_logs_to("stderr")

    try:
        if args.slice:
            if args.slice == "-":
                payload = json.load(sys.stdin)
            else:
                with open(args.slice, encoding="utf-8") as f:
                    payload = json.load(f)
            slice_ = slice_from_payload(payload)
        else:
            slice_ = slice_from_args(args)
        dax = compile_slice(slice_)
    except (CompileError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(dax)
    return 0


if __name__ == "__main__":
    sys.exit(main())
