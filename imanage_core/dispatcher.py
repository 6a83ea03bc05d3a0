"""Search strategy dispatch.

:meth:`SearchDispatcher.dispatch` maps one request variant onto the
matching :class:`DocumentRepository` call.  :meth:`SearchDispatcher.search`
is the unified entry point used by the standardized ``search`` operation;
its ``batch`` strategy fans one query out into three sub-searches and
merges whatever succeeded.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from imanage_core.batch import BatchInput, BatchOrchestrator, BatchSummary
from imanage_core.config import DEFAULT_LIMIT, SearchScope, SearchType
from imanage_core.errors import UnknownStrategyError, ValidationError
from imanage_core.executor import DocumentRepository, NormalizedSearchResult
from imanage_core.models import (
    AdvancedSearch,
    BatchSearch,
    KeywordSearch,
    SearchRequest,
    SingleSearch,
    TitleSearch,
)

logger = logging.getLogger(__name__)

#: Number of sub-searches the unified ``batch`` strategy fans out into.
FAN_OUT = 3


def fan_out_requests(query: str, limit: int) -> List[SingleSearch]:
    """The sub-searches behind a unified ``batch`` search, in merge order."""
    share = limit // FAN_OUT or DEFAULT_LIMIT
    return [
        KeywordSearch(keywords=query, search_in=SearchScope.ANYWHERE, limit=share),
        TitleSearch(title=query, limit=share),
        KeywordSearch(keywords=query, search_in=SearchScope.BODY, limit=share),
    ]


def flatten_summary(query: Optional[str], summary: BatchSummary) -> NormalizedSearchResult:
    """Concatenate the results of successful items; failures add nothing."""
    results: List[Dict[str, Any]] = []
    for result in summary.successful_results():
        results.extend(result.results)
    return NormalizedSearchResult(results=results, total=len(results), search_term=query)


class SearchDispatcher:
    """Routes search requests to the repository."""

    def __init__(self, repository: DocumentRepository) -> None:
        self._repository = repository
        self._handlers: Dict[
            str, Callable[[Any], Awaitable[NormalizedSearchResult]]
        ] = {
            SearchType.TITLE: self._run_title,
            SearchType.KEYWORDS: self._run_keywords,
            SearchType.ADVANCED: self._run_advanced,
        }
        # Batch items go through _dispatch_single, so batches never nest.
        self.orchestrator = BatchOrchestrator(self._dispatch_single)

    async def dispatch(self, request: SearchRequest) -> NormalizedSearchResult:
        """Run one request; a :class:`BatchSearch` is run and flattened."""
        if isinstance(request, BatchSearch):
            summary = await self.orchestrator.run(list(request.searches))
            return flatten_summary(None, summary)
        return await self._dispatch_single(request)

    async def _dispatch_single(self, request: SingleSearch) -> NormalizedSearchResult:
        strategy = getattr(request, "strategy", None)
        handler = self._handlers.get(strategy) if isinstance(strategy, str) else None
        if handler is None:
            raise UnknownStrategyError(strategy)
        return await handler(request)

    async def run_batch(self, requests: Sequence[BatchInput]) -> BatchSummary:
        if not requests:
            raise ValidationError("searches", "Missing required field: searches (array)")
        return await self.orchestrator.run(requests)

    async def search(
        self,
        query: str,
        search_type: str = SearchType.KEYWORDS,
        search_in: str = SearchScope.ANYWHERE,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> NormalizedSearchResult:
        if not query:
            raise ValidationError("query")
        logger.info("Unified search %r (%s, limit=%d)", query, search_type, limit)

        if search_type == SearchType.TITLE:
            return await self.dispatch(TitleSearch(title=query, limit=limit))
        if search_type == SearchType.KEYWORDS:
            return await self.dispatch(
                KeywordSearch(keywords=query, search_in=search_in, limit=limit)
            )
        if search_type == SearchType.ADVANCED:
            return await self.dispatch(
                AdvancedSearch(
                    filters=dict(filters) if filters else {SearchScope.ANYWHERE: query},
                    limit=limit,
                )
            )
        if search_type == SearchType.BATCH:
            summary = await self.orchestrator.run(fan_out_requests(query, limit))
            return flatten_summary(query, summary)
        raise UnknownStrategyError(search_type)

    # -- handlers -----------------------------------------------------------

    async def _run_title(self, request: TitleSearch) -> NormalizedSearchResult:
        return await self._repository.search_by_title(request.title, request.limit)

    async def _run_keywords(self, request: KeywordSearch) -> NormalizedSearchResult:
        return await self._repository.search_by_keywords(
            request.keywords, request.search_in, request.limit
        )

    async def _run_advanced(self, request: AdvancedSearch) -> NormalizedSearchResult:
        if not request.filters:
            raise ValidationError("filters")
        return await self._repository.search_advanced(
            request.filters, request.profile_fields, request.limit
        )
