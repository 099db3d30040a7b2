"""Typed view of SPARQL JSON results.

Query payloads travel through the cache as plain SPARQL 1.1 JSON result
documents.  This module gives collaborators strongly-typed access to them:

* :class:`ResultCell` and :class:`QueryResult` pydantic models,
* :func:`to_query_result` to build a :class:`QueryResult` from a payload,
* :func:`get_bindings` for a simplified ``{variable: value}`` row list.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

# ── Result models ─────────────────────────────────────────────────


class ResultCell(BaseModel):
    """One cell in a SPARQL result row."""

    value: str
    type: str  # "uri" | "literal" | "bnode"
    lang: str | None = None
    datatype: str | None = None


class QueryResult(BaseModel):
    """Structured result from a SPARQL query execution."""

    query: str
    instance: str
    variables: list[str]
    rows: list[dict[str, ResultCell]]
    row_count: int
    duration_ms: int = 0
    cached: bool = False


# ── Public helpers ────────────────────────────────────────────────


def to_query_result(
    payload: dict[str, Any],
    *,
    query: str,
    instance: str,
    duration_ms: int = 0,
    cached: bool = False,
) -> QueryResult:
    """Convert a SPARQL JSON results document into a :class:`QueryResult`.

    ``typed-literal`` cells (emitted by some older endpoints) are reported
    as ``literal``; variables unbound in a row are left out of that row.
    """
    variables: list[str] = payload.get("head", {}).get("vars", [])
    bindings: list[dict[str, Any]] = (
        payload.get("results", {}).get("bindings", [])
    )

    rows: list[dict[str, ResultCell]] = []
    for binding in bindings:
        row: dict[str, ResultCell] = {}
        for var in variables:
            cell_data = binding.get(var)
            if cell_data:
                cell_type = cell_data.get("type", "literal")
                if cell_type == "uri":
                    rtype = "uri"
                elif cell_type == "bnode":
                    rtype = "bnode"
                else:
                    rtype = "literal"
                row[var] = ResultCell(
                    value=cell_data["value"],
                    type=rtype,
                    lang=cell_data.get("xml:lang"),
                    datatype=cell_data.get("datatype"),
                )
        rows.append(row)

    return QueryResult(
        query=query,
        instance=instance,
        variables=variables,
        rows=rows,
        row_count=len(rows),
        duration_ms=duration_ms,
        cached=cached,
    )


def get_bindings(payload: dict[str, Any]) -> list[dict[str, str]]:
    """Return the bindings of *payload* as ``{variable: value}`` rows.

    Example:
        >>> for row in get_bindings(results):
        ...     print(row["property"], row["count"])
    """
    bindings = payload.get("results", {}).get("bindings", [])

    simplified = []
    for binding in bindings:
        row = {}
        for var, val in binding.items():
            row[var] = val.get("value", "")
        simplified.append(row)

    return simplified
