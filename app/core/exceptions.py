from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base error rendered by the global error formatter."""

    status_code: int = 500
    error: str = "API Error"

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        self.extra = extra or {}


class BadRequestError(GatewayError):
    status_code = 400
    error = "Bad Request"


class NotFoundError(GatewayError):
    status_code = 404
    error = "Not Found"


class ServiceNotReadyError(GatewayError):
    status_code = 500
    error = "Azure DevOps client not initialized"

    def __init__(self, message: str = "Server is starting up, please try again in a moment"):
        super().__init__(message)


class ConfigurationError(GatewayError):
    status_code = 503
    error = "Service not configured"


class UpstreamError(GatewayError):
    status_code = 502
    error = "Upstream service error"


class RecommendationParseError(UpstreamError):
    """The model answered but the content is not a valid recommendation array."""

    error = "Failed to parse recommendations"

    def __init__(self, reason: str, raw_content: str):
        super().__init__(f"Failed to parse recommendations: {reason}")
        self.reason = reason
        self.raw_content = raw_content
