"""Error taxonomy shared by the ingestion and analytics paths.

Every error is raised where it is detected and rendered by a single handler
in :mod:`eventmetrics.main`; none of them is retried inside the service.
"""

from __future__ import annotations

from typing import Any


class EventMetricsError(Exception):
    """Base class: an HTTP status, a stable ``kind`` and a human message."""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class BadRequestError(EventMetricsError):
    """The request is malformed before any payload validation (e.g. no API key)."""

    status_code = 400
    kind = "bad_request"


class ValidationError(EventMetricsError):
    """Payload or query parameters failed validation; carries itemized issues."""

    status_code = 400
    kind = "validation_failed"

    def __init__(self, issues: list[dict[str, str]], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.issues = issues

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["issues"] = self.issues
        return body


class PayloadTooLargeError(EventMetricsError):
    status_code = 413
    kind = "payload_too_large"


class AuthenticationError(EventMetricsError):
    """Unresolvable API key or missing/invalid caller identity."""

    status_code = 401
    kind = "unauthorized"


class AuthorizationError(EventMetricsError):
    """Caller is known but not a member of the project's team."""

    status_code = 403
    kind = "forbidden"


class NotFoundError(EventMetricsError):
    status_code = 404
    kind = "not_found"


class StorageError(EventMetricsError):
    """The backing store failed. The message never carries driver detail."""

    status_code = 503
    kind = "storage_unavailable"

    def __init__(self, message: str = "Storage temporarily unavailable") -> None:
        super().__init__(message)
