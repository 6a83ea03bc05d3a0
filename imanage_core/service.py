"""The connector facade shared by the REST and MCP servers.

Usage::

    connector = ImanageConnector()
    payload = await connector.search("merger agreement", search_type="batch")
    document = await connector.fetch(payload["results"][0]["id"])
    await connector.aclose()
"""

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from imanage_core.batch import BatchInput
from imanage_core.config import DEFAULT_LIMIT, SearchScope, SearchType, UpstreamConfig
from imanage_core.credentials import CredentialCache
from imanage_core.dispatcher import SearchDispatcher
from imanage_core.errors import ValidationError
from imanage_core.executor import DocumentRepository
from imanage_core.projection import (
    describe_content,
    project_fetch_result,
    project_search_result,
)

logger = logging.getLogger(__name__)


class ImanageConnector:
    """Owns the one credential cache, repository and dispatcher of a process."""

    def __init__(
        self,
        config: Optional[UpstreamConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        credentials: Optional[CredentialCache] = None,
    ) -> None:
        self.config = config or UpstreamConfig()
        self.repository = DocumentRepository(
            self.config, client=client, credentials=credentials
        )
        self.dispatcher = SearchDispatcher(self.repository)

    @property
    def credentials(self) -> CredentialCache:
        return self.repository.credentials

    async def aclose(self) -> None:
        await self.repository.aclose()

    async def search(
        self,
        query: str,
        search_type: str = SearchType.KEYWORDS,
        search_in: str = SearchScope.ANYWHERE,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> Dict[str, Any]:
        """Standardized search: ``{results: [...], total, search_type}``."""
        result = await self.dispatcher.search(
            query,
            search_type=search_type,
            search_in=search_in,
            filters=filters,
            limit=limit,
        )
        projected = [project_search_result(doc) for doc in result.results]
        return {
            "results": projected,
            "total": result.total or len(projected),
            "search_type": search_type,
        }

    async def fetch(self, doc_id: str, include_content: bool = True) -> Dict[str, Any]:
        """Standardized fetch: ``{id, title, text, url, metadata}``."""
        if not doc_id:
            raise ValidationError("id")
        details = await self.repository.get_document_details(doc_id)
        text = ""
        if include_content:
            download = await self.repository.download_document(doc_id)
            text = describe_content(download.content, details.get("type"))
        logger.info("Fetched document %s (content=%s)", doc_id, include_content)
        return project_fetch_result(details, text)

    async def batch(self, searches: Sequence[BatchInput]) -> Dict[str, Any]:
        summary = await self.dispatcher.run_batch(searches)
        return summary.to_dict()
