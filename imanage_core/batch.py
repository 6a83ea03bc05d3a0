"""Sequential batch execution with per-item failure isolation.

Items run one after another in input order so that log lines and result
indices line up with the request.  A failing item is recorded as a
:class:`Failure` at its own index and the batch moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Sequence,
    Union,
)

from imanage_core.errors import ConnectorError
from imanage_core.executor import NormalizedSearchResult
from imanage_core.models import SingleSearch, parse_search_spec

logger = logging.getLogger(__name__)

SearchRunner = Callable[[SingleSearch], Awaitable[NormalizedSearchResult]]

#: A batch item is either an already-built request or a raw spec mapping,
#: which is parsed inside the item's own failure boundary.
BatchInput = Union[SingleSearch, Mapping[str, Any]]


@dataclass(frozen=True)
class Success:
    value: NormalizedSearchResult


@dataclass(frozen=True)
class Failure:
    reason: str


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class BatchItemResult:
    index: int
    strategy: Any
    outcome: Outcome

    @property
    def success(self) -> bool:
        return isinstance(self.outcome, Success)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "searchIndex": self.index,
            "searchType": self.strategy,
            "success": self.success,
        }
        if isinstance(self.outcome, Success):
            data.update(self.outcome.value.to_dict())
        else:
            data["error"] = self.outcome.reason
        return data


@dataclass(frozen=True)
class BatchSummary:
    items: List[BatchItemResult]

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    def successful_results(self) -> List[NormalizedSearchResult]:
        return [
            item.outcome.value
            for item in self.items
            if isinstance(item.outcome, Success)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "totalSearches": self.total,
            "successfulSearches": self.succeeded,
            "results": [item.to_dict() for item in self.items],
        }


def _strategy_of(item: BatchInput) -> Any:
    if isinstance(item, Mapping):
        return item.get("type")
    return getattr(item, "strategy", None)


class BatchOrchestrator:
    """Runs a list of searches through ``runner`` and collects the outcomes."""

    def __init__(self, runner: SearchRunner) -> None:
        self._runner = runner

    async def run(self, requests: Sequence[BatchInput]) -> BatchSummary:
        count = len(requests)
        items: List[BatchItemResult] = []
        for index, request in enumerate(requests):
            strategy = _strategy_of(request)
            logger.info("Executing search %d/%d: %s", index + 1, count, strategy)
            outcome = await self._attempt(request)
            if isinstance(outcome, Failure):
                logger.error("Search %d failed: %s", index + 1, outcome.reason)
            items.append(BatchItemResult(index=index, strategy=strategy, outcome=outcome))

        summary = BatchSummary(items=items)
        logger.info(
            "Batch search completed: %d/%d successful",
            summary.succeeded,
            summary.total,
        )
        return summary

    async def _attempt(self, request: BatchInput) -> Outcome:
        try:
            if isinstance(request, Mapping) or not hasattr(request, "strategy"):
                request = parse_search_spec(request)
            return Success(await self._runner(request))
        except ConnectorError as exc:
            return Failure(str(exc))
