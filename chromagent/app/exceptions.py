"""Custom exceptions for the service."""

from typing import Optional


class ChromAgentException(Exception):
    """Base class for service exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code and error code for consistent HTTP
    response handling.
    """
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str = "Service error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": self.error, "message": self.message}


class ConfigurationError(ChromAgentException):
    """Raised when a required environment value or source list is missing.

    Detected before any network call. Maps to HTTP 500.
    """
    status_code = 500
    error = "configuration_error"


class ToolValidationError(ChromAgentException):
    """Raised when tool arguments are malformed or name an unknown scope.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "validation_error"

    def __init__(self, message: str, tool_name: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(message)


class UnknownToolError(ToolValidationError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, tool_name: str, available: list[str]):
        self.available = available
        super().__init__(
            f"Unknown tool '{tool_name}'. Available: {', '.join(available)}",
            tool_name=tool_name,
        )


class UpstreamError(ChromAgentException):
    """Raised when the Nia API answers with a non-success status.

    The upstream response body is kept as the message so the model can
    reason about it. Maps to HTTP 502 Bad Gateway.
    """
    status_code = 502
    error = "upstream_error"

    def __init__(self, upstream_status: int, body: str):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(f"Nia API error: {body}")


class UpstreamResponseError(UpstreamError):
    """Raised when a successful Nia response does not match its schema."""

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        ChromAgentException.__init__(
            self, f"Unexpected Nia response from {endpoint}: {detail}"
        )
        self.upstream_status = 200
        self.body = detail


class ModelProviderError(ChromAgentException):
    """Raised when the AI gateway rejects a chat completion request."""
    status_code = 502
    error = "model_provider_error"

    def __init__(self, upstream_status: int, body: str):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(f"Model provider error ({upstream_status}): {body}")
