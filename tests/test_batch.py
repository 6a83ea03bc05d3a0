"""Tests for sequential batch execution and per-item failure isolation."""

import pytest

from imanage_core.batch import BatchItemResult, BatchOrchestrator, BatchSummary, Failure, Success
from imanage_core.errors import UpstreamSearchError
from imanage_core.executor import NormalizedSearchResult
from imanage_core.models import KeywordSearch, TitleSearch, parse_search_spec


class RecordingRunner:
    """Fake search runner: titles fail, keyword searches return one hit."""

    def __init__(self):
        self.seen = []

    async def __call__(self, request):
        self.seen.append(request)
        if isinstance(request, TitleSearch):
            raise UpstreamSearchError("title search failed with HTTP 500", status=500)
        return NormalizedSearchResult(
            results=[{"id": request.keywords}],
            total=1,
            search_term=request.keywords,
            search_in=request.search_in,
        )


@pytest.fixture()
def runner():
    return RecordingRunner()


@pytest.mark.asyncio
class TestBatchOrchestrator:

    async def test_failure_is_isolated_at_its_index(self, runner):
        requests = [
            KeywordSearch(keywords="first"),
            TitleSearch(title="second"),
            KeywordSearch(keywords="third", search_in="body"),
        ]

        summary = await BatchOrchestrator(runner).run(requests)

        assert summary.total == 3
        assert summary.succeeded == 2
        assert [item.index for item in summary.items] == [0, 1, 2]
        assert [item.success for item in summary.items] == [True, False, True]
        assert summary.items[1].outcome == Failure("title search failed with HTTP 500")

    async def test_items_run_sequentially_in_input_order(self, runner):
        requests = [KeywordSearch(keywords=str(n)) for n in range(5)]

        await BatchOrchestrator(runner).run(requests)

        assert [r.keywords for r in runner.seen] == ["0", "1", "2", "3", "4"]

    async def test_raw_specs_are_parsed_per_item(self, runner):
        requests = [
            {"type": "keywords", "query": "merger", "searchIn": "comments"},
            {"type": "fuzzy", "query": "merger"},
            {"type": "keywords"},
        ]

        summary = await BatchOrchestrator(runner).run(requests)

        assert summary.succeeded == 1
        assert runner.seen == [KeywordSearch(keywords="merger", search_in="comments")]
        assert summary.items[1].strategy == "fuzzy"
        assert summary.items[1].outcome == Failure("Unknown search type: fuzzy")
        assert summary.items[2].outcome == Failure("Missing required field: query")

    async def test_non_object_items_fail_in_place(self, runner):
        requests = ["not-an-object", None, {"type": "keywords", "query": "merger"}]

        summary = await BatchOrchestrator(runner).run(requests)

        assert summary.total == 3
        assert [item.success for item in summary.items] == [False, False, True]
        assert summary.items[0].strategy is None
        assert summary.items[0].outcome == Failure("Each search must be an object")
        assert runner.seen == [KeywordSearch(keywords="merger")]

    async def test_succeeded_never_exceeds_total(self, runner):
        summary = await BatchOrchestrator(runner).run(
            [TitleSearch(title="a"), TitleSearch(title="b")]
        )
        assert summary.succeeded == 0
        assert summary.total == 2
        assert summary.successful_results() == []


class TestLegacyShape:

    def test_summary_to_dict(self):
        ok = NormalizedSearchResult(results=[{"id": "d1"}], total=1, search_term="merger", search_in="body")
        summary = BatchSummary(
            items=[
                BatchItemResult(index=0, strategy="keywords", outcome=Success(ok)),
                BatchItemResult(index=1, strategy="title", outcome=Failure("boom")),
            ]
        )

        assert summary.to_dict() == {
            "success": True,
            "totalSearches": 2,
            "successfulSearches": 1,
            "results": [
                {
                    "searchIndex": 0,
                    "searchType": "keywords",
                    "success": True,
                    "searchTerm": "merger",
                    "searchIn": "body",
                    "results": [{"id": "d1"}],
                    "total": 1,
                },
                {
                    "searchIndex": 1,
                    "searchType": "title",
                    "success": False,
                    "error": "boom",
                },
            ],
        }


class TestParseSearchSpec:

    def test_title(self):
        assert parse_search_spec({"type": "title", "query": "nda", "limit": 5}) == TitleSearch(title="nda", limit=5)

    def test_keywords_default_scope(self):
        assert parse_search_spec({"type": "keywords", "query": "nda"}).search_in == "anywhere"

    def test_advanced_requires_filters(self):
        from imanage_core.errors import ValidationError

        with pytest.raises(ValidationError, match="filters"):
            parse_search_spec({"type": "advanced", "query": "nda"})

    def test_advanced(self):
        request = parse_search_spec(
            {"type": "advanced", "filters": {"type": "WORD"}, "profileFields": ["name"]}
        )
        assert request.filters == {"type": "WORD"}
        assert request.profile_fields == ["name"]
        assert request.limit == 50

    @pytest.mark.parametrize("limit", [-1, "many"])
    def test_invalid_limit(self, limit):
        from imanage_core.errors import ValidationError

        with pytest.raises(ValidationError, match="Invalid limit"):
            parse_search_spec({"type": "title", "query": "nda", "limit": limit})

    def test_zero_limit_means_default(self):
        assert parse_search_spec({"type": "title", "query": "nda", "limit": 0}).limit == 50
