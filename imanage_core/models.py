"""Search request variants and the parser for raw batch specs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from imanage_core.config import DEFAULT_LIMIT, SearchScope, SearchType
from imanage_core.errors import UnknownStrategyError, ValidationError


@dataclass(frozen=True)
class TitleSearch:
    strategy: ClassVar[str] = SearchType.TITLE

    title: str
    limit: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class KeywordSearch:
    strategy: ClassVar[str] = SearchType.KEYWORDS

    keywords: str
    search_in: str = SearchScope.ANYWHERE
    limit: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class AdvancedSearch:
    strategy: ClassVar[str] = SearchType.ADVANCED

    filters: Dict[str, Any] = field(default_factory=dict)
    profile_fields: Optional[Any] = None
    limit: int = DEFAULT_LIMIT


SingleSearch = Union[TitleSearch, KeywordSearch, AdvancedSearch]


@dataclass(frozen=True)
class BatchSearch:
    """An ordered list of single searches; batches never nest."""

    strategy: ClassVar[str] = SearchType.BATCH

    searches: Tuple[SingleSearch, ...] = ()


SearchRequest = Union[TitleSearch, KeywordSearch, AdvancedSearch, BatchSearch]


def _limit(value: Any) -> int:
    # 0 and missing both mean "use the default", as the legacy API always did.
    if not value:
        return DEFAULT_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("limit", f"Invalid limit: {value!r}") from exc
    if limit < 1:
        raise ValidationError("limit", f"Invalid limit: {value!r}")
    return limit


def parse_search_spec(spec: Mapping[str, Any]) -> SingleSearch:
    """Build a request variant from a ``/batch-search`` item.

    Items look like ``{"type": "keywords", "query": "...", "searchIn":
    "body", "limit": 20}``; advanced items carry ``filters`` and optional
    ``profileFields`` instead of ``query``.
    """
    if not isinstance(spec, Mapping):
        raise ValidationError("searches", "Each search must be an object")

    search_type = spec.get("type")
    limit = _limit(spec.get("limit"))

    if search_type == SearchType.TITLE:
        query = spec.get("query")
        if not query:
            raise ValidationError("query")
        return TitleSearch(title=str(query), limit=limit)

    if search_type == SearchType.KEYWORDS:
        query = spec.get("query")
        if not query:
            raise ValidationError("query")
        return KeywordSearch(
            keywords=str(query),
            search_in=spec.get("searchIn") or SearchScope.ANYWHERE,
            limit=limit,
        )

    if search_type == SearchType.ADVANCED:
        filters = spec.get("filters")
        if not filters or not isinstance(filters, Mapping):
            raise ValidationError("filters")
        return AdvancedSearch(
            filters=dict(filters),
            profile_fields=spec.get("profileFields"),
            limit=limit,
        )

    raise UnknownStrategyError(search_type)
