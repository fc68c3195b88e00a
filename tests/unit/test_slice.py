"""
Unit tests -- SliceDescriptor / FilterClause value objects.
"""
import pytest
from pydantic import ValidationError

from pivotdax.pivot.slice import SliceDescriptor, FilterClause


def test_slice_defaults():
    s = SliceDescriptor()
    assert s.rows == ()
    assert s.columns == ()
    assert s.measures == ()
    assert s.filters == ()


def test_none_lists_become_empty():
    s = SliceDescriptor(rows=None, columns=None, measures=["Profit"], filters=None)
    assert s.rows == ()
    assert s.filters == ()
    assert s.measures == ("Profit",)


def test_lists_coerced_to_tuples():
    s = SliceDescriptor(rows=["Region"], filters=[{"field": "F", "members": ["a"]}])
    assert isinstance(s.rows, tuple)
    assert isinstance(s.filters[0], FilterClause)
    assert s.filters[0].members == ("a",)


def test_slice_is_frozen():
    s = SliceDescriptor(rows=["Region"])
    with pytest.raises(ValidationError):
        s.rows = ("Other",)


def test_filter_members_ordered_set():
    f = FilterClause(field="F", members=["b", "a", "b", "c", "a"])
    assert f.members == ("b", "a", "c")


def test_filter_none_members():
    f = FilterClause(field="F", members=None)
    assert f.members == ()


def test_filter_field_not_trimmed():
    assert FilterClause(field="  F ").field == "  F "
