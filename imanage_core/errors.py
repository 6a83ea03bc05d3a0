"""Exception hierarchy shared by the REST and MCP surfaces."""

from typing import Any, Dict, Optional


class ConnectorError(Exception):
    """Base class for every error the connector raises on purpose."""

    status_code: int = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class ValidationError(ConnectorError):
    """A required request field is missing or malformed."""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"Missing required field: {field}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self)}


class AuthenticationError(ConnectorError):
    """The token endpoint refused us or answered with something unusable."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)


class UpstreamSearchError(ConnectorError):
    """A search, details or download call to iManage failed.

    ``status`` is the upstream HTTP status, or ``None`` when the request
    never got a response (DNS, TLS, timeout...).
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        operation: str = "",
    ) -> None:
        self.status = status
        self.operation = operation
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        if self.operation:
            data["operation"] = self.operation
        return data


class UnknownStrategyError(ConnectorError):
    """The search-type discriminator is not one we know how to run."""

    status_code = 400

    def __init__(self, strategy: Any) -> None:
        self.strategy = strategy
        super().__init__(f"Unknown search type: {strategy}")
