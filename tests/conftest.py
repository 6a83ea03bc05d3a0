"""
Shared fixtures for the connector test suite

The fake upstream mirrors the iManage Work endpoints the connector calls, so
tests exercise the real httpx request building and response parsing without
any traffic leaving the process
"""

import json
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from imanage_core.config import UpstreamConfig
from imanage_core.credentials import CredentialCache
from imanage_core.service import ImanageConnector


# Environment variables

@pytest.fixture(autouse=True)
def env_vars(monkeypatch):
    """Pin every environment variable the connector reads

    autouse=True ensures no test accidentally picks up a developer's .env
    """
    env = {
        "AUTH_URL_PREFIX": "https://auth.imanage.test/auth",
        "URL_PREFIX": "https://imanage.test",
        "CUSTOMER_ID": "1",
        "LIBRARY_ID": "Legal_QA",
        "_USERNAME": "svc-research",
        "PASSWORD": "pw",
        "CLIENT_ID": "cid",
        "CLIENT_SECRET": "secret",
        "VERIFY_TLS": "false",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def upstream_config(env_vars):
    return UpstreamConfig(
        auth_url_prefix=env_vars["AUTH_URL_PREFIX"],
        url_prefix=env_vars["URL_PREFIX"],
        customer_id=env_vars["CUSTOMER_ID"],
        library_id=env_vars["LIBRARY_ID"],
        username=env_vars["_USERNAME"],
        password=env_vars["PASSWORD"],
        client_id=env_vars["CLIENT_ID"],
        client_secret=env_vars["CLIENT_SECRET"],
        verify_tls=False,
        timeout=5,
    )


TOKEN_PATH = "/auth/oauth2/token"
DOCUMENTS_PATH = "/api/v2/customers/1/libraries/Legal_QA/documents"
SEARCH_PATH = DOCUMENTS_PATH + "/search"


# Clock

class FakeClock:
    """Manually advanced replacement for time.time"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


# Fake iManage upstream

Responder = Callable[[httpx.Request], httpx.Response]


class FakeImanage:
    """Routes httpx.MockTransport requests to canned responders

    Each route holds a queue of responders; the last one is reused once the
    queue is down to a single entry, so a route registered once answers
    every call
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Responder]] = {}
        self.token(access_token="token-1", expires_in=1800)

    # -- registration --

    def route(self, method: str, path: str, *responders: Responder) -> None:
        self._routes[(method, path)] = list(responders)

    def json(self, method: str, path: str, payload: Any, status: int = 200) -> None:
        self.route(method, path, lambda request: httpx.Response(status, json=payload))

    def token(self, status: int = 200, **payload: Any) -> None:
        self.json("POST", TOKEN_PATH, payload, status=status)

    # -- inspection --

    def calls(self, path: str, method: str = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path == path and (method is None or r.method == method)
        ]

    @property
    def token_calls(self) -> List[httpx.Request]:
        return self.calls(TOKEN_PATH)

    # -- transport --

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "no route"})
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        return responder(request)


@pytest.fixture()
def fake_imanage():
    return FakeImanage()


@pytest.fixture()
def http_client(fake_imanage):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_imanage.handler))


@pytest.fixture()
def credential_cache(upstream_config, http_client, clock):
    return CredentialCache(upstream_config, http_client, clock=clock)


@pytest.fixture()
def connector(upstream_config, http_client, credential_cache):
    return ImanageConnector(
        upstream_config, client=http_client, credentials=credential_cache
    )


# Sample payloads

@pytest.fixture()
def sample_documents():
    """Two realistic records as the Work API returns them in search results"""
    return [
        {
            "id": "Legal_QA!3402.1",
            "name": "Share Purchase Agreement",
            "author": "jdoe",
            "author_description": "Jane Doe",
            "workspace_name": "Project Falcon",
            "workspace_id": "Legal_QA!77",
            "size": 1536,
            "edit_date": "2024-03-01T10:00:00Z",
            "create_date": "2024-02-01T09:00:00Z",
            "type": "WORD",
            "type_description": "Microsoft Word",
            "extension": "docx",
            "version": 3,
            "database": "Legal_QA",
            "document_number": 3402,
            "custom1_description": "Acme Corp",
            "custom2_description": "M&A",
            "custom3_description": "Closing",
            "last_user": "asmith",
            "last_user_description": "Alex Smith",
            "default_security": "public",
            "iwl": "iwl:dms=imanage.test&lib=Legal_QA&num=3402&ver=1",
        },
        {
            "id": "Legal_QA!3410.1",
            "name": "Disclosure Letter",
            "author": "asmith",
            "workspace_name": "Project Falcon",
            "size": 2048,
            "edit_date": "2024-03-02T10:00:00Z",
            "type": "ACROBAT",
        },
    ]


def documents_payload(docs, envelope="data", **extra):
    """Wrap records the way the given endpoint envelope would"""
    if envelope == "bare":
        return list(docs)
    payload = {envelope: list(docs)}
    payload.update(extra)
    return payload


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content.decode())


# FastAPI test client

@pytest.fixture()
def client(connector):
    """HTTPX AsyncClient wired to the FastAPI app for integration testing"""
    from server.app import create_app

    transport = httpx.ASGITransport(app=create_app(connector))
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")
