"""Tests for the connector facade behind both servers."""

import base64

import httpx
import pytest

from imanage_core.errors import UpstreamSearchError, ValidationError
from tests.conftest import DOCUMENTS_PATH, documents_payload


@pytest.fixture()
def document_routes(fake_imanage, sample_documents):
    fake_imanage.json("GET", DOCUMENTS_PATH + "/DOC-1", {"data": sample_documents[0]})
    fake_imanage.route(
        "GET",
        DOCUMENTS_PATH + "/DOC-1/download",
        lambda request: httpx.Response(
            200, content=b"contract text", headers={"content-type": "application/msword"}
        ),
    )
    return fake_imanage


@pytest.mark.asyncio
class TestConnectorSearch:

    async def test_projects_results(self, connector, fake_imanage, sample_documents):
        fake_imanage.json("GET", DOCUMENTS_PATH, documents_payload(sample_documents, total=12))

        payload = await connector.search("agreement", search_type="title")

        assert payload["search_type"] == "title"
        assert payload["total"] == 12
        assert [r["id"] for r in payload["results"]] == ["Legal_QA!3402.1", "Legal_QA!3410.1"]
        assert set(payload["results"][0]) == {"id", "title", "summary", "url", "metadata"}

    async def test_upstream_failure_propagates(self, connector, fake_imanage):
        fake_imanage.json("GET", DOCUMENTS_PATH, {}, status=500)

        with pytest.raises(UpstreamSearchError):
            await connector.search("agreement")


@pytest.mark.asyncio
class TestConnectorFetch:

    async def test_fetch_with_content(self, connector, document_routes):
        document = await connector.fetch("DOC-1")

        encoded = base64.b64encode(b"contract text").decode()
        assert document["id"] == "Legal_QA!3402.1"
        assert document["text"] == f"Document content (13 Bytes WORD): {encoded}"
        assert document["metadata"]["version"] == "3"

    async def test_fetch_without_content_skips_download(self, connector, document_routes):
        document = await connector.fetch("DOC-1", include_content=False)

        assert document["text"] == ""
        assert document_routes.calls(DOCUMENTS_PATH + "/DOC-1/download") == []

    async def test_fetch_requires_id(self, connector, fake_imanage):
        with pytest.raises(ValidationError, match="id"):
            await connector.fetch("")
        assert fake_imanage.requests == []

    async def test_failed_download_fails_fetch(self, connector, fake_imanage, sample_documents):
        fake_imanage.json("GET", DOCUMENTS_PATH + "/DOC-1", {"data": sample_documents[0]})

        with pytest.raises(UpstreamSearchError) as exc_info:
            await connector.fetch("DOC-1")
        assert exc_info.value.operation == "download"


@pytest.mark.asyncio
class TestConnectorBatch:

    async def test_batch_returns_legacy_summary(self, connector, fake_imanage, sample_documents):
        fake_imanage.json("GET", DOCUMENTS_PATH, documents_payload(sample_documents))

        payload = await connector.batch(
            [
                {"type": "title", "query": "agreement"},
                {"type": "advanced"},
            ]
        )

        assert payload["totalSearches"] == 2
        assert payload["successfulSearches"] == 1
        assert payload["results"][0]["total"] == 2
        assert payload["results"][1] == {
            "searchIndex": 1,
            "searchType": "advanced",
            "success": False,
            "error": "Missing required field: filters",
        }

    async def test_shares_one_token_across_operations(self, connector, document_routes, sample_documents):
        document_routes.json("GET", DOCUMENTS_PATH, documents_payload(sample_documents))

        await connector.search("agreement", search_type="batch")
        await connector.fetch("DOC-1")

        assert len(document_routes.token_calls) == 1
