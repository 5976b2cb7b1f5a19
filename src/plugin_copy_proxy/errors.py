from datetime import datetime, timezone
from typing import Any


class ProxyError(Exception):
    """Base error rendered to the caller as ``{error, message, details?}``."""

    status_code = 500
    error = "Proxy server error"

    def __init__(self, message: str, details: Any | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidRequestError(ProxyError):
    status_code = 400
    error = "Invalid request"

    def __init__(self, message: str, error: str | None = None, details: Any | None = None) -> None:
        super().__init__(message, details=details)
        if error:
            self.error = error


class ConfigurationError(ProxyError):
    status_code = 500
    error = "Configuration error"


class UpstreamError(ProxyError):
    error = "Claude API error"

    def __init__(self, status_code: int, details: Any | None = None) -> None:
        super().__init__(self.describe_status(status_code), details=details, status_code=status_code)

    @staticmethod
    def describe_status(status_code: int) -> str:
        if status_code == 401:
            return "Authentication failed - check API key configuration"
        if status_code == 429:
            return "Rate limit exceeded - please try again later"
        if status_code >= 500:
            return "Claude API service temporarily unavailable"
        return "Claude API request failed"

    def as_payload(self) -> dict[str, Any]:
        payload = super().as_payload()
        payload["status"] = self.status_code
        return payload


class UpstreamFormatError(ProxyError):
    error = "Invalid JSON response from Claude API"

    def __init__(self, raw_response: str, status_code: int = 500) -> None:
        super().__init__("Claude API returned a body that is not JSON", status_code=status_code)
        self.raw_response = raw_response

    def as_payload(self) -> dict[str, Any]:
        payload = super().as_payload()
        payload["rawResponse"] = self.raw_response
        return payload


class ProxyServerError(ProxyError):
    def as_payload(self) -> dict[str, Any]:
        payload = super().as_payload()
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        return payload
