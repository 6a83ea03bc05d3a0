"""MCP server exposing the standardized ``search`` and ``fetch`` tools.

The orchestration client discovers the two tools, calls ``search`` to
find candidate documents and ``fetch`` to pull metadata and content for
the ones it wants to read::

    search(query, search_type)  ──► ImanageConnector.search
        ──► dispatcher (title | keywords | advanced | batch fan-out)
    fetch(id, include_content)  ──► ImanageConnector.fetch
        ──► details + optional download

Usage (local development)::

    python -m connector.mcp_server          # streamable-http on :8000
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from imanage_core.config import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MCP_PORT,
    SearchScope,
    SearchType,
)
from imanage_core.errors import ConnectorError
from imanage_core.service import ImanageConnector

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Thread-safe singleton: connector
# ---------------------------------------------------------------------------

_connector: Optional[ImanageConnector] = None
_connector_lock = threading.Lock()


def _get_connector() -> ImanageConnector:
    """Lazily build the process-wide connector (and its token cache)."""
    global _connector
    if _connector is not None:
        return _connector
    with _connector_lock:
        if _connector is None:
            logger.info("Creating iManage connector")
            _connector = ImanageConnector()
        return _connector


def _error_payload(operation: str, exc: ConnectorError, **context: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": f"{operation} failed", "message": str(exc)}
    payload.update(context)
    return payload


# ---------------------------------------------------------------------------
# FastMCP server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "iManage Deep Research",
    instructions=(
        "Search and fetch documents from an iManage Work library.  Call "
        "`search` to discover documents, then `fetch` with a result id to "
        "read its metadata and content."
    ),
)


async def search(
    query: str,
    search_type: str = SearchType.KEYWORDS,
    search_in: str = SearchScope.ANYWHERE,
    filters: Optional[Dict[str, Any]] = None,
    limit: int = DEFAULT_LIMIT,
) -> Dict[str, Any]:
    """Search iManage documents.

    Args:
        query: Search query or keywords.
        search_type: ``title`` for document names, ``keywords`` for content,
            ``advanced`` for filtered search, ``batch`` for a combined
            multi-strategy search.
        search_in: Keyword scope: ``anywhere``, ``body``, ``comments`` or
            ``title``.
        filters: Advanced filters (type, author, edit_date_from,
            edit_date_to, workspace_id); used with ``advanced``.
        limit: Maximum number of results (1-200, default 50).

    Returns:
        ``{"results": [{id, title, summary, url, metadata}], "total",
        "search_type"}``.
    """
    limit = max(1, min(MAX_LIMIT, limit))
    logger.info("search: query=%r search_type=%s limit=%d", query, search_type, limit)
    try:
        return await _get_connector().search(
            query,
            search_type=search_type,
            search_in=search_in,
            filters=filters,
            limit=limit,
        )
    except ConnectorError as exc:
        logger.exception("search failed")
        return _error_payload("Search", exc, query=query)


async def fetch(id: str, include_content: bool = True) -> Dict[str, Any]:
    """Fetch one document's metadata and, optionally, its content.

    Args:
        id: Document identifier from a search result (e.g. ``Legal_QA!3402.1``).
        include_content: Embed the base64 document content in ``text``.

    Returns:
        ``{"id", "title", "text", "url", "metadata"}``.
    """
    logger.info("fetch: id=%r include_content=%s", id, include_content)
    try:
        return await _get_connector().fetch(id, include_content=include_content)
    except ConnectorError as exc:
        logger.exception("fetch failed")
        return _error_payload("Fetch", exc, id=id)


mcp.tool(name="search")(search)
mcp.tool(name="fetch")(fetch)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting iManage MCP server on port %d", MCP_PORT)
    mcp.run(transport="streamable-http", host="0.0.0.0", port=MCP_PORT)
