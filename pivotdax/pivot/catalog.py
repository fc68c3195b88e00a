"""
Loads, parses, and caches the pivot metadata catalog YAML.

The catalog lists the field and measure references the pivot UI may offer,
plus the placeholder rows used by the mock query executor.  It is metadata
only: the DAX compiler accepts any reference string without consulting it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache
from typing import Any

import yaml

from pivotdax.core.config import get_settings

_CATALOG_PATH = Path(__file__).resolve().parents[2] / "catalog" / "pivot_catalog.yml"


# ── Typed catalog objects ────────────────────────────────

@dataclass(frozen=True)
class CatalogEntry:
    name: str
    description: str = ""


@dataclass
class PivotCatalog:
    """Fully parsed metadata catalog."""

    version: int
    dimensions: list[CatalogEntry]
    measures: list[CatalogEntry]
    mock_results: list[dict[str, Any]] = field(default_factory=list)

    def get_dimension_names(self) -> list[str]:
        return [d.name for d in self.dimensions]

    def get_measure_names(self) -> list[str]:
        return [m.name for m in self.measures]


# ── Parsing ──────────────────────────────────────────────

def _parse_entry(raw: Any) -> CatalogEntry:
    # Bare strings are allowed as shorthand for {name: ...}
    if isinstance(raw, str):
        return CatalogEntry(name=raw)
    return CatalogEntry(name=raw["name"], description=raw.get("description", "") or "")


def _parse_catalog(raw_yaml: dict[str, Any]) -> PivotCatalog:
    return PivotCatalog(
        version=raw_yaml.get("version", 1),
        dimensions=[_parse_entry(d) for d in raw_yaml.get("dimensions") or []],
        measures=[_parse_entry(m) for m in raw_yaml.get("measures") or []],
        mock_results=[dict(r) for r in raw_yaml.get("mock_results") or []],
    )


def catalog_path() -> Path:
    configured = get_settings().catalog_path
    return Path(configured) if configured else _CATALOG_PATH


# ── Public API ───────────────────────────────────────────

@lru_cache
def load_catalog() -> PivotCatalog:
    """Load and cache the metadata catalog from YAML."""
    with open(catalog_path(), encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return _parse_catalog(raw)
