"""Single upstream queries against the iManage Work REST API.

Every search call returns a :class:`NormalizedSearchResult`.  The Work API
does not wrap its document lists consistently across endpoints and
versions, so the raw payload goes through a small ordered decision table
(:data:`ENVELOPE_EXTRACTORS`) before anything else looks at it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from imanage_core.config import DEFAULT_LIMIT, SearchScope, UpstreamConfig
from imanage_core.credentials import CredentialCache
from imanage_core.errors import UpstreamSearchError

logger = logging.getLogger(__name__)

DocumentRecord = Dict[str, Any]


@dataclass
class NormalizedSearchResult:
    """Canonical ``{results, total}`` pair plus what was searched for.

    ``total`` is whatever upstream reported and may disagree with
    ``len(results)``.
    """

    results: List[DocumentRecord]
    total: int
    search_term: Optional[str] = None
    search_in: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.search_term is not None:
            data["searchTerm"] = self.search_term
        if self.search_in is not None:
            data["searchIn"] = self.search_in
        if self.filters is not None:
            data["filters"] = self.filters
        data["results"] = self.results
        data["total"] = self.total
        return data


@dataclass
class DownloadedDocument:
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


# ---------------------------------------------------------------------------
# Envelope normalization
# ---------------------------------------------------------------------------

Extractor = Callable[[Any], Any]


def _member(key: str) -> Extractor:
    def extract(payload: Any) -> Any:
        if isinstance(payload, Mapping):
            return payload.get(key)
        return None

    return extract


#: Tried in order; the first extractor yielding a non-``None`` value wins.
ENVELOPE_EXTRACTORS: Tuple[Tuple[str, Extractor], ...] = (
    ("data", _member("data")),
    ("results", _member("results")),
    ("payload", lambda payload: payload),
)

#: Tried in order; the first value coercible to a positive integer wins,
#: else ``len(results)``.
TOTAL_KEYS: Tuple[str, ...] = ("total", "count")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def extract_documents(payload: Any) -> List[DocumentRecord]:
    """Pull the document list out of any known response envelope."""
    resolved: Any = None
    for _name, extractor in ENVELOPE_EXTRACTORS:
        resolved = extractor(payload)
        if resolved is not None:
            break

    if _is_sequence(resolved):
        return list(resolved)
    nested = resolved.get("results") if isinstance(resolved, Mapping) else None
    if _is_sequence(nested):
        return list(nested)
    return []


def extract_total(payload: Any, results: Sequence[Any]) -> int:
    if isinstance(payload, Mapping):
        for key in TOTAL_KEYS:
            value = payload.get(key)
            if not value or isinstance(value, bool):
                continue
            try:
                total = int(value)
            except (TypeError, ValueError, OverflowError):
                continue
            if total > 0:
                return total
    return len(results)


def normalize_response(payload: Any, **searched: Any) -> NormalizedSearchResult:
    results = extract_documents(payload)
    return NormalizedSearchResult(
        results=results,
        total=extract_total(payload, results),
        **searched,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DocumentRepository:
    """Async access to one iManage library.

    The repository shares its ``httpx.AsyncClient`` with the credential
    cache.  When no client is injected it creates (and later closes) its
    own, honouring the TLS-verification and timeout settings.
    """

    def __init__(
        self,
        config: Optional[UpstreamConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        credentials: Optional[CredentialCache] = None,
    ) -> None:
        self.config = config or UpstreamConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            verify=self.config.verify_tls,
            timeout=self.config.timeout,
        )
        self.credentials = credentials or CredentialCache(self.config, self._client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- searches -----------------------------------------------------------

    async def search_by_title(
        self, title: str, limit: int = DEFAULT_LIMIT
    ) -> NormalizedSearchResult:
        params = {"title": title, "limit": limit, "latest": True}
        payload = await self._get_json(
            self.config.documents_url, "title search", params=params
        )
        result = normalize_response(payload, search_term=title)
        logger.info("Title search %r: %d documents", title, len(result.results))
        return result

    async def search_by_keywords(
        self,
        keywords: str,
        search_in: str = SearchScope.ANYWHERE,
        limit: int = DEFAULT_LIMIT,
    ) -> NormalizedSearchResult:
        scope = search_in if search_in in SearchScope.ALL else SearchScope.ANYWHERE
        params: Dict[str, Any] = {"limit": limit, "latest": True, scope: keywords}
        payload = await self._get_json(
            self.config.documents_url, "keyword search", params=params
        )
        result = normalize_response(payload, search_term=keywords, search_in=scope)
        logger.info(
            "Keyword search %r in %s: %d documents",
            keywords,
            scope,
            len(result.results),
        )
        return result

    async def search_advanced(
        self,
        filters: Dict[str, Any],
        profile_fields: Optional[Any] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> NormalizedSearchResult:
        body: Dict[str, Any] = {"limit": limit, "filters": filters}
        if profile_fields:
            body["profile_fields"] = profile_fields
        payload = await self._request_json(
            "POST", self.config.search_url, "advanced search", json=body
        )
        result = normalize_response(payload, filters=filters)
        logger.info("Advanced search: %d documents", len(result.results))
        return result

    # -- single documents ---------------------------------------------------

    async def get_document_details(self, doc_id: str) -> DocumentRecord:
        payload = await self._get_json(
            self.config.document_url(doc_id), "document details"
        )
        if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
            return dict(payload["data"])
        if isinstance(payload, Mapping):
            return dict(payload)
        raise UpstreamSearchError(
            f"Unexpected details payload for document {doc_id}",
            operation="document details",
        )

    async def download_document(self, doc_id: str) -> DownloadedDocument:
        response = await self._send("GET", self.config.download_url(doc_id), "download")
        logger.info("Downloaded document %s (%d bytes)", doc_id, len(response.content))
        return DownloadedDocument(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    # -- plumbing -----------------------------------------------------------

    async def _get_json(self, url: str, operation: str, **kwargs: Any) -> Any:
        return await self._request_json("GET", url, operation, **kwargs)

    async def _request_json(
        self, method: str, url: str, operation: str, **kwargs: Any
    ) -> Any:
        response = await self._send(method, url, operation, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamSearchError(
                f"{operation} returned invalid JSON",
                status=response.status_code,
                operation=operation,
            ) from exc

    async def _send(
        self, method: str, url: str, operation: str, **kwargs: Any
    ) -> httpx.Response:
        token = await self.credentials.get_access_token()
        logger.debug("%s %s (%s)", method, url, operation)
        try:
            response = await self._client.request(
                method, url, headers={"X-Auth-Token": token}, **kwargs
            )
        except httpx.HTTPError as exc:
            logger.error("%s failed: %s", operation, exc)
            raise UpstreamSearchError(
                f"{operation} request failed: {exc}", operation=operation
            ) from exc

        if not response.is_success:
            logger.error("%s failed: HTTP %d", operation, response.status_code)
            raise UpstreamSearchError(
                f"{operation} failed with HTTP {response.status_code}",
                status=response.status_code,
                operation=operation,
            )
        return response
