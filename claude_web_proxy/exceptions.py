"""Custom exceptions for Claude Web Proxy."""

from typing import Any


class ClaudeWebProxyError(Exception):
    """Base exception for Claude Web Proxy errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "internal_server_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


class ConfigurationError(ClaudeWebProxyError):
    """Session or lifecycle used before it was initialized (500)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            error_type="configuration_error",
            status_code=500,
            details=details,
        )


class TenantNotSet(ConfigurationError):
    """Organization ID has not been resolved yet."""

    def __init__(self, message: str = "Organization ID not set") -> None:
        super().__init__(message)


class BackendProtocolError(ClaudeWebProxyError):
    """Backend answered with something we cannot interpret (502)."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_type="backend_protocol_error",
            status_code=status_code,
            details=details,
        )


class UnexpectedStatus(BackendProtocolError):
    """Backend returned a status code other than the expected one."""

    def __init__(self, backend_status: int, body: str | None = None) -> None:
        details: dict[str, Any] = {"backend_status": backend_status}
        if body:
            details["body"] = body
        super().__init__(
            message=f"Unexpected status code: {backend_status}", details=details
        )
        self.backend_status = backend_status


class MissingIdentifier(BackendProtocolError):
    """Backend response lacks an identifier we need."""

    def __init__(self, field: str) -> None:
        super().__init__(message=f"'{field}' not found in response")
        self.field = field


class NoTenantFound(BackendProtocolError):
    """The account has no organizations."""

    def __init__(self, message: str = "No organizations found") -> None:
        super().__init__(message=message)


class AmbiguousTenant(BackendProtocolError):
    """Several organizations and none of them is the default tier."""

    def __init__(self, message: str = "No default organization found") -> None:
        super().__init__(message=message)


class RateLimited(ClaudeWebProxyError):
    """Backend rate limit hit (429)."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(
            message=message, error_type="rate_limit_error", status_code=429
        )


class InputValidationError(ClaudeWebProxyError):
    """Caller supplied invalid input (400)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            status_code=400,
            details=details,
        )


class MalformedAttachment(InputValidationError):
    """Data URI lacks its scheme, content type, encoding marker or separator."""


class InvalidEncoding(InputValidationError):
    """Data URI is not marked base64 or its payload does not decode."""


class UnknownSettingKey(InputValidationError):
    """Account setting key is not part of the known settings object."""

    def __init__(self, key: str) -> None:
        super().__init__(message=f"Unknown setting key: {key}", details={"key": key})
        self.key = key


class StreamTranslationError(ClaudeWebProxyError):
    """Reading the backend event stream failed (502)."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message, error_type="stream_error", status_code=502
        )
