"""REST surface of the iManage research connector.

Serves the standardized ``/tools``, ``/search`` and ``/fetch`` operations
for the orchestration client alongside the legacy single-purpose
endpoints kept for older integrations.

Usage::

    python -m server.app                    # uvicorn on $PORT (3000)
"""

import base64
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from imanage_core import manifests
from imanage_core.config import (
    DEFAULT_LIMIT,
    ENVIRONMENT,
    MAX_LIMIT,
    PORT,
    SearchScope,
    SearchType,
)
from imanage_core.errors import ConnectorError, ValidationError
from imanage_core.projection import project_legacy
from imanage_core.service import ImanageConnector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class TitleSearchRequest(BaseModel):
    title: Optional[str] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1)


class KeywordSearchRequest(BaseModel):
    keywords: Optional[str] = None
    searchIn: str = SearchScope.ANYWHERE
    limit: int = Field(DEFAULT_LIMIT, ge=1)


class AdvancedSearchRequest(BaseModel):
    filters: Optional[Dict[str, Any]] = None
    profileFields: Optional[Any] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1)


class DocumentRequest(BaseModel):
    docId: Optional[str] = None
    returnContent: bool = False


class BatchSearchRequest(BaseModel):
    searches: Optional[List[Any]] = None


class SearchRequest(BaseModel):
    query: Optional[str] = None
    search_type: str = SearchType.KEYWORDS
    search_in: str = SearchScope.ANYWHERE
    filters: Optional[Dict[str, Any]] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


class FetchRequest(BaseModel):
    id: Optional[str] = None
    include_content: bool = True


def _require(value: Any, field: str) -> Any:
    if not value:
        raise ValidationError(field)
    return value


def _failure(label: str, exc: ConnectorError, **context: Any) -> JSONResponse:
    """Error payload naming the failed operation and what it was about."""
    logger.error("%s: %s", label, exc)
    content: Dict[str, Any] = {"error": label, "message": str(exc)}
    content.update(context)
    return JSONResponse(status_code=exc.status_code, content=content)


def _legacy_results(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [project_legacy(doc) for doc in results]


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(connector: Optional[ImanageConnector] = None) -> FastAPI:
    """Build the FastAPI app around ``connector`` (a fresh one by default)."""

    owns_connector = connector is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_connector and app.state.connector is not None:
            await app.state.connector.aclose()

    # FastAPI's generated schema would shadow the /openapi.json we publish.
    app = FastAPI(
        title=manifests.SERVICE_NAME,
        version=manifests.SERVICE_VERSION,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.connector = connector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
        ],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request with its origin, agent and outcome."""
        started = time.perf_counter()
        logger.info(
            "%s %s (origin=%s, user-agent=%s)",
            request.method,
            request.url.path,
            request.headers.get("origin", "none"),
            request.headers.get("user-agent", "unknown"),
        )
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        logger.warning("Rejected %s: %s", request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    def get_connector() -> ImanageConnector:
        if app.state.connector is None:
            app.state.connector = ImanageConnector()
        return app.state.connector

    # -- discovery ----------------------------------------------------------

    @app.get("/")
    async def index():
        return manifests.service_index()

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container probes."""
        config = get_connector().config
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": {
                "name": ENVIRONMENT,
                "authUrlPrefix": config.auth_url_prefix,
                "urlPrefix": config.url_prefix,
                "customerId": config.customer_id,
                "libraryId": config.library_id,
            },
        }

    @app.get("/tools")
    async def tools():
        return manifests.TOOLS

    @app.get("/openapi.json")
    async def openapi(request: Request):
        return manifests.openapi_document(str(request.base_url).rstrip("/"))

    @app.get("/.well-known/ai-plugin.json")
    async def plugin(request: Request):
        return manifests.plugin_manifest(str(request.base_url).rstrip("/"))

    # -- standardized operations -------------------------------------------

    @app.post("/search")
    async def search(body: SearchRequest):
        query = _require(body.query, "query")
        try:
            return await get_connector().search(
                query,
                search_type=body.search_type,
                search_in=body.search_in,
                filters=body.filters,
                limit=body.limit,
            )
        except ValidationError:
            raise
        except ConnectorError as exc:
            return _failure("Search failed", exc, query=query)

    @app.post("/fetch")
    async def fetch(body: FetchRequest):
        doc_id = _require(body.id, "id")
        try:
            return await get_connector().fetch(
                doc_id, include_content=body.include_content
            )
        except ConnectorError as exc:
            return _failure("Fetch failed", exc, id=doc_id)

    # -- legacy operations --------------------------------------------------

    @app.post("/search-by-title")
    async def search_by_title(body: TitleSearchRequest):
        title = _require(body.title, "title")
        try:
            result = await get_connector().repository.search_by_title(title, body.limit)
        except ConnectorError as exc:
            return _failure("Title search failed", exc, searchTerm=title)
        return {
            "success": True,
            "searchType": SearchType.TITLE,
            "searchTerm": title,
            "results": _legacy_results(result.results),
            "total": result.total,
        }

    @app.post("/search-by-keywords")
    async def search_by_keywords(body: KeywordSearchRequest):
        keywords = _require(body.keywords, "keywords")
        try:
            result = await get_connector().repository.search_by_keywords(
                keywords, body.searchIn, body.limit
            )
        except ConnectorError as exc:
            return _failure("Keyword search failed", exc, searchTerm=keywords)
        return {
            "success": True,
            "searchType": SearchType.KEYWORDS,
            "searchIn": body.searchIn,
            "searchTerm": keywords,
            "results": _legacy_results(result.results),
            "total": result.total,
        }

    @app.post("/search-advanced")
    async def search_advanced(body: AdvancedSearchRequest):
        filters = _require(body.filters, "filters")
        try:
            result = await get_connector().repository.search_advanced(
                filters, body.profileFields, body.limit
            )
        except ConnectorError as exc:
            return _failure("Advanced search failed", exc, filters=filters)
        return {
            "success": True,
            "searchType": SearchType.ADVANCED,
            "filters": filters,
            "results": _legacy_results(result.results),
            "total": result.total,
        }

    @app.post("/batch-search")
    async def batch_search(body: BatchSearchRequest):
        searches = _require(body.searches, "searches (array)")
        try:
            return await get_connector().batch(searches)
        except ValidationError:
            raise
        except ConnectorError as exc:
            return _failure("Batch search failed", exc)

    @app.post("/get-document-details")
    async def get_document_details(body: DocumentRequest):
        doc_id = _require(body.docId, "docId")
        try:
            details = await get_connector().repository.get_document_details(doc_id)
        except ConnectorError as exc:
            return _failure("Failed to get document details", exc, docId=doc_id)
        return {"success": True, "docId": doc_id, "details": details}

    @app.post("/download-document")
    async def download_document(body: DocumentRequest):
        doc_id = _require(body.docId, "docId")
        try:
            document = await get_connector().repository.download_document(doc_id)
        except ConnectorError as exc:
            return _failure("Document download failed", exc, docId=doc_id)

        if body.returnContent:
            return {
                "success": True,
                "docId": doc_id,
                "contentType": document.content_type or "application/octet-stream",
                "size": document.size,
                "content": base64.b64encode(document.content).decode("ascii"),
            }
        return Response(
            content=document.content,
            media_type=document.content_type or "application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="document-{doc_id}.pdf"'
            },
        )

    @app.post("/fetch-document")
    async def fetch_document(body: DocumentRequest):
        doc_id = _require(body.docId, "docId")
        try:
            document = await get_connector().repository.download_document(doc_id)
        except ConnectorError as exc:
            return _failure("Failed to fetch document", exc, docId=doc_id)
        return Response(content=document.content, media_type="application/pdf")

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting iManage connector REST API on port %d", PORT)
    logger.info("Environment: %s", ENVIRONMENT)
    uvicorn.run(app, host="0.0.0.0", port=PORT)
