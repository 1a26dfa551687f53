"""Error taxonomy shared by the API and the editor client.

Each error knows the HTTP status it maps to so the server can render it and
the client can rebuild it from a response.
"""
from __future__ import annotations

from typing import Any


class HotspotPagesError(Exception):
    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail}


class ValidationError(HotspotPagesError):
    status_code = 400
    default_detail = "Invalid request data"


class Unauthorized(HotspotPagesError):
    status_code = 401
    default_detail = "Edit token required"


class Forbidden(HotspotPagesError):
    status_code = 403
    default_detail = "Invalid edit token or page not found"


class QuotaExceeded(HotspotPagesError):
    status_code = 402
    default_detail = "Hotspot limit reached"

    def __init__(
        self,
        reason: str,
        limit: int,
        current: int,
        detail: str | None = None,
    ) -> None:
        super().__init__(detail)
        self.reason = reason
        self.limit = limit
        self.current = current

    def to_payload(self) -> dict[str, Any]:
        return {
            "detail": self.detail,
            "reason": self.reason,
            "limit": self.limit,
            "current": self.current,
        }


class NotFound(HotspotPagesError):
    status_code = 404
    default_detail = "Not found"


class Transient(HotspotPagesError):
    status_code = 500
    default_detail = "Internal server error"


_BY_STATUS: dict[int, type[HotspotPagesError]] = {
    400: ValidationError,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
}


def error_from_response(status_code: int, payload: dict[str, Any] | None) -> HotspotPagesError:
    """Rebuild an error from an HTTP status and its JSON body."""
    payload = payload or {}
    detail = payload.get("detail")
    if not isinstance(detail, str):
        detail = None
    if status_code == 402:
        return QuotaExceeded(
            reason=str(payload.get("reason", "")),
            limit=int(payload.get("limit", 0) or 0),
            current=int(payload.get("current", 0) or 0),
            detail=detail,
        )
    if status_code == 422:
        return ValidationError(detail)
    error_cls = _BY_STATUS.get(status_code, Transient)
    return error_cls(detail)
