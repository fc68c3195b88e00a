"""
Errors raised while compiling a pivot slice into DAX.
"""
from __future__ import annotations


class CompileError(ValueError):
    """Base class for slice compilation failures."""


class InvalidInput(CompileError):
    """The slice is missing, or selects neither rows nor measures."""


class MalformedFilter(CompileError):
    """A filter restricts members but names no field."""

    def __init__(self, index: int, message: str | None = None):
        self.index = index
        super().__init__(message or f"Filter #{index} has members but no field")
