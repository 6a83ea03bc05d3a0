"""Static discovery documents served verbatim to the orchestration client."""

from typing import Any, Dict, List

from imanage_core.config import DEFAULT_LIMIT, MAX_LIMIT, SearchScope, SearchType

SERVICE_NAME = "iManage Deep Research"
SERVICE_VERSION = "2.0.0"

_LIMIT_SCHEMA: Dict[str, Any] = {
    "type": "integer",
    "description": "Maximum number of documents to return in search results",
    "default": DEFAULT_LIMIT,
    "minimum": 1,
    "maximum": MAX_LIMIT,
}

# ---------------------------------------------------------------------------
# Tool definitions (function-calling format)
# ---------------------------------------------------------------------------

TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "description": "Search for documents using various strategies and filters",
        "function": {
            "name": "search",
            "description": (
                "Search iManage documents using various strategies including "
                "title search, keyword search, advanced filters, and batch "
                "operations for comprehensive document discovery"
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query or keywords to find relevant documents",
                    },
                    "search_type": {
                        "type": "string",
                        "enum": list(SearchType.ALL),
                        "description": (
                            "Type of search strategy: 'title' for document names, "
                            "'keywords' for content search, 'advanced' for filtered "
                            "search, 'batch' for comprehensive multi-strategy search"
                        ),
                        "default": SearchType.KEYWORDS,
                    },
                    "search_in": {
                        "type": "string",
                        "enum": list(SearchScope.ALL),
                        "description": (
                            "Scope of keyword search: 'anywhere' searches all fields, "
                            "'body' searches document content, 'comments' searches "
                            "document comments, 'title' searches document names"
                        ),
                        "default": SearchScope.ANYWHERE,
                    },
                    "filters": {
                        "type": "object",
                        "description": (
                            "Advanced search filters for precise document filtering "
                            "(used with 'advanced' search_type)"
                        ),
                        "properties": {
                            "type": {
                                "type": "string",
                                "description": "Document file type filter (e.g., WORD, ACROBAT, EXCEL)",
                            },
                            "author": {
                                "type": "string",
                                "description": "Filter by document author (user ID or email)",
                            },
                            "edit_date_from": {
                                "type": "string",
                                "description": (
                                    "Filter documents modified after this date "
                                    "(ISO 8601 format: YYYY-MM-DDTHH:mm:ssZ)"
                                ),
                            },
                            "edit_date_to": {
                                "type": "string",
                                "description": (
                                    "Filter documents modified before this date "
                                    "(ISO 8601 format: YYYY-MM-DDTHH:mm:ssZ)"
                                ),
                            },
                            "workspace_id": {
                                "type": "string",
                                "description": "Filter by specific workspace/container ID",
                            },
                        },
                    },
                    "limit": _LIMIT_SCHEMA,
                },
                "required": ["query"],
            },
        },
    },
    {
        "type": "function",
        "description": "Fetch document metadata and content by ID",
        "function": {
            "name": "fetch",
            "description": (
                "Retrieve detailed content and comprehensive metadata for a "
                "specific document identified by its ID, including document "
                "text content for analysis and research purposes"
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": (
                            "Unique document identifier (e.g., 'Legal_QA!3402.1') "
                            "obtained from search results"
                        ),
                    },
                    "include_content": {
                        "type": "boolean",
                        "description": (
                            "Whether to include the actual document content "
                            "(base64 encoded) for text analysis and research. Set "
                            "to true for document analysis, false for metadata only"
                        ),
                        "default": True,
                    },
                },
                "required": ["id"],
            },
        },
    },
]


def _object_schema(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "object", "properties": properties}


def openapi_document(base_url: str) -> Dict[str, Any]:
    """OpenAPI 3 description of the standardized ``/search`` and ``/fetch``."""
    search_params = TOOLS[0]["function"]["parameters"]
    fetch_params = TOOLS[1]["function"]["parameters"]
    nullable_url = {"type": ["string", "null"]}
    return {
        "openapi": "3.0.1",
        "info": {
            "title": f"{SERVICE_NAME} API",
            "description": "Search and analyze iManage documents for comprehensive research",
            "version": SERVICE_VERSION,
        },
        "servers": [{"url": base_url}],
        "paths": {
            "/search": {
                "post": {
                    "operationId": "searchDocuments",
                    "summary": "Search iManage documents",
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": search_params}},
                    },
                    "responses": {
                        "200": {
                            "description": "Search results",
                            "content": {
                                "application/json": {
                                    "schema": _object_schema(
                                        {
                                            "results": {
                                                "type": "array",
                                                "items": _object_schema(
                                                    {
                                                        "id": {"type": "string"},
                                                        "title": {"type": "string"},
                                                        "summary": {"type": "string"},
                                                        "url": nullable_url,
                                                        "metadata": {"type": "object"},
                                                    }
                                                ),
                                            },
                                            "total": {"type": "integer"},
                                            "search_type": {"type": "string"},
                                        }
                                    )
                                }
                            },
                        }
                    },
                }
            },
            "/fetch": {
                "post": {
                    "operationId": "fetchDocument",
                    "summary": "Fetch document content",
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": fetch_params}},
                    },
                    "responses": {
                        "200": {
                            "description": "Document content and metadata",
                            "content": {
                                "application/json": {
                                    "schema": _object_schema(
                                        {
                                            "id": {"type": "string"},
                                            "title": {"type": "string"},
                                            "text": {"type": "string"},
                                            "url": nullable_url,
                                            "metadata": {"type": "object"},
                                        }
                                    )
                                }
                            },
                        }
                    },
                }
            },
        },
    }


def plugin_manifest(base_url: str) -> Dict[str, Any]:
    return {
        "schema_version": "v1",
        "name_for_human": SERVICE_NAME,
        "name_for_model": "imanage_research",
        "description_for_human": (
            "Search and analyze documents in iManage for comprehensive research reports"
        ),
        "description_for_model": (
            "Tool for searching iManage documents using title, keyword, and "
            "advanced search strategies, plus document content retrieval for "
            "analysis and report generation."
        ),
        "auth": {"type": "none"},
        "api": {"type": "openapi", "url": f"{base_url}/openapi.json"},
        "logo_url": None,
        "contact_email": "support@example.com",
        "legal_info_url": "https://example.com/legal",
    }


def service_index() -> Dict[str, Any]:
    return {
        "message": "iManage MCP Server for Deep Research",
        "version": SERVICE_VERSION,
        "openai_connector": {
            "tools_endpoint": "/tools",
            "search_endpoint": "/search",
            "fetch_endpoint": "/fetch",
        },
        "legacy_endpoints": {
            "/search-by-title": "POST - Search documents by title",
            "/search-by-keywords": "POST - Search documents by keywords in body/anywhere/comments",
            "/search-advanced": "POST - Advanced search with complex filters",
            "/download-document": "POST - Download document content",
            "/get-document-details": "POST - Get document metadata",
            "/batch-search": "POST - Perform multiple searches in one request",
            "/fetch-document": "POST - Legacy raw download endpoint",
            "/health": "GET - Health check",
        },
        "usage": {
            "titleSearch": {
                "endpoint": "/search-by-title",
                "body": {"title": "contract agreement", "limit": DEFAULT_LIMIT},
            },
            "keywordSearch": {
                "endpoint": "/search-by-keywords",
                "body": {
                    "keywords": "litigation",
                    "searchIn": SearchScope.ANYWHERE,
                    "limit": DEFAULT_LIMIT,
                },
            },
        },
    }
