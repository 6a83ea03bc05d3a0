"""Configuration constants for the iManage research connector.

All values are overridable via environment variables (or a local ``.env``
file) so that the same image can be pointed at a test tenant or the
production library without code changes.
"""

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Upstream endpoints and credentials
# ---------------------------------------------------------------------------

AUTH_URL_PREFIX: str = os.getenv("AUTH_URL_PREFIX", "")
URL_PREFIX: str = os.getenv("URL_PREFIX", "")
CUSTOMER_ID: str = os.getenv("CUSTOMER_ID", "")
LIBRARY_ID: str = os.getenv("LIBRARY_ID", "")

# ``USERNAME`` collides with the login name on some hosts, hence the prefix.
USERNAME: str = os.getenv("_USERNAME", "")
PASSWORD: str = os.getenv("PASSWORD", "")
CLIENT_ID: str = os.getenv("CLIENT_ID", "")
CLIENT_SECRET: str = os.getenv("CLIENT_SECRET", "")

#: Set to ``false`` for test tenants that serve self-signed certificates.
VERIFY_TLS: bool = _env_flag("VERIFY_TLS", "true")

#: Timeout (seconds) for every upstream call.
UPSTREAM_TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", "60"))

# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------

PORT: int = int(os.getenv("PORT", "3000"))
MCP_PORT: int = int(os.getenv("MCP_PORT", "8000"))
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# ---------------------------------------------------------------------------
# Search and token defaults
# ---------------------------------------------------------------------------

DEFAULT_LIMIT: int = 50
MAX_LIMIT: int = 200

#: Lifetime assumed when the token endpoint omits ``expires_in``.
DEFAULT_TOKEN_LIFETIME: int = 1800

#: A token is never handed out within this many seconds of its real expiry.
TOKEN_SAFETY_MARGIN: int = 60

TOKEN_SCOPE: str = "admin"


class SearchScope:
    """Where a keyword search looks."""

    ANYWHERE = "anywhere"
    BODY = "body"
    COMMENTS = "comments"
    TITLE = "title"

    ALL: Tuple[str, ...] = (ANYWHERE, BODY, COMMENTS, TITLE)


class SearchType:
    """Search strategy discriminators."""

    TITLE = "title"
    KEYWORDS = "keywords"
    ADVANCED = "advanced"
    BATCH = "batch"

    ALL: Tuple[str, ...] = (TITLE, KEYWORDS, ADVANCED, BATCH)


@dataclass(frozen=True)
class UpstreamConfig:
    """Everything a connector instance needs to reach one iManage library."""

    auth_url_prefix: str = AUTH_URL_PREFIX
    url_prefix: str = URL_PREFIX
    customer_id: str = CUSTOMER_ID
    library_id: str = LIBRARY_ID
    username: str = USERNAME
    password: str = PASSWORD
    client_id: str = CLIENT_ID
    client_secret: str = CLIENT_SECRET
    verify_tls: bool = VERIFY_TLS
    timeout: float = UPSTREAM_TIMEOUT

    @property
    def token_url(self) -> str:
        return f"{self.auth_url_prefix}/oauth2/token?scope={TOKEN_SCOPE}"

    @property
    def documents_url(self) -> str:
        return (
            f"{self.url_prefix}/api/v2/customers/{self.customer_id}"
            f"/libraries/{self.library_id}/documents"
        )

    @property
    def search_url(self) -> str:
        return f"{self.documents_url}/search"

    def document_url(self, doc_id: str) -> str:
        return f"{self.documents_url}/{doc_id}"

    def download_url(self, doc_id: str) -> str:
        return f"{self.documents_url}/{doc_id}/download"
