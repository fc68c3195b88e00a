"""
Query executors -- run compiled DAX and return result rows.

Two backends:
  1. ``MockQueryExecutor``  returns the catalog's placeholder rows (demo mode)
  2. ``XmlaQueryExecutor``  posts the DAX to an XMLA endpoint (msmdpump.dll)
     and parses the tabular rowset response

Executors are swappable: the compiler never knows which one consumes its output.
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any, Protocol
from xml.sax.saxutils import escape

import httpx

from pivotdax.core.config import Settings, get_settings
from pivotdax.core.logging import get_logger
from pivotdax.pivot.catalog import load_catalog

logger = get_logger(__name__)

_SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
_ROWSET_NS = "urn:schemas-microsoft-com:xml-analysis:rowset"
_ESCAPED_NAME_RE = re.compile(r"_x([0-9A-Fa-f]{4})_")

_EXECUTE_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">
  <soap:Body>
    <Execute xmlns="urn:schemas-microsoft-com:xml-analysis">
      <Command>
        <Statement>{statement}</Statement>
      </Command>
      <Properties>
        <PropertyList>
          <Catalog>{catalog}</Catalog>
          <Format>Tabular</Format>
        </PropertyList>
      </Properties>
    </Execute>
  </soap:Body>
</soap:Envelope>"""


class QueryExecutionError(RuntimeError):
    """The downstream engine rejected or failed to run the query."""


class QueryExecutor(Protocol):
    def execute(self, dax: str) -> list[dict[str, Any]]:
        ...


class MockQueryExecutor:
    """Returns fixed placeholder rows regardless of the query."""

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self._rows = rows

    def execute(self, dax: str) -> list[dict[str, Any]]:
        rows = self._rows if self._rows is not None else load_catalog().mock_results
        logger.info("Mock executor returning %d placeholder rows", len(rows))
        return [dict(r) for r in rows]

    def close(self) -> None:
        pass


def decode_column_name(name: str) -> str:
    """Undo XML name escaping, e.g. 'Date_x005B_Month_x005D_' -> 'Date[Month]'."""
    return _ESCAPED_NAME_RE.sub(lambda m: chr(int(m.group(1), 16)), name)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_rowset(xml_text: str) -> list[dict[str, Any]]:
    """Parse an XMLA tabular rowset into a list of row dicts.

    Raises
    ------
    QueryExecutionError
        If the response is a SOAP fault or carries XMLA error messages.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise QueryExecutionError(f"Unparseable XMLA response: {exc}") from exc

    fault = root.find(f".//{{{_SOAP_NS}}}Fault")
    if fault is not None:
        reason = fault.findtext("faultstring") or "SOAP fault"
        raise QueryExecutionError(reason.strip())

    errors = [
        el.get("Description", "") for el in root.iter() if _local(el.tag) == "Error"
    ]
    if errors:
        raise QueryExecutionError("; ".join(e for e in errors if e) or "XMLA error")

    rows: list[dict[str, Any]] = []
    for row in root.iter(f"{{{_ROWSET_NS}}}row"):
        rows.append({decode_column_name(_local(col.tag)): col.text for col in row})
    return rows


class XmlaQueryExecutor:
    """Runs DAX against an Analysis Services XMLA endpoint over HTTP."""

    def __init__(
        self,
        url: str,
        catalog: str,
        timeout_s: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.catalog = catalog
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s)

    def build_envelope(self, dax: str) -> str:
        return _EXECUTE_TEMPLATE.format(statement=escape(dax), catalog=escape(self.catalog))

    def execute(self, dax: str) -> list[dict[str, Any]]:
        logger.info("Executing DAX via XMLA (%d chars) at %s", len(dax), self.url)
        try:
            resp = self._client.post(
                self.url,
                content=self.build_envelope(dax).encode("utf-8"),
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": "urn:schemas-microsoft-com:xml-analysis:Execute",
                },
            )
        except httpx.HTTPError as exc:
            raise QueryExecutionError(f"XMLA request failed: {exc}") from exc

        # SOAP faults arrive with HTTP 500; parse them before checking the status
        if resp.status_code >= 400 and "Fault" not in resp.text:
            raise QueryExecutionError(f"XMLA endpoint returned HTTP {resp.status_code}")

        rows = parse_rowset(resp.text)
        logger.info("Returned %d rows", len(rows))
        return rows

    def close(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> XmlaQueryExecutor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def get_executor(settings: Settings | None = None) -> QueryExecutor:
    """Build the executor selected by ``EXECUTOR_BACKEND``.

    The caller owns the returned executor and must ``close()`` it.
    """
    settings = settings or get_settings()
    backend = settings.executor_backend.lower()
    if backend == "mock":
        return MockQueryExecutor()
    if backend == "xmla":
        return XmlaQueryExecutor(
            url=settings.xmla_url,
            catalog=settings.xmla_catalog,
            timeout_s=settings.xmla_timeout_s,
        )
    raise ValueError(f"Unknown executor backend '{settings.executor_backend}'")
