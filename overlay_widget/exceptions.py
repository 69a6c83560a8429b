from __future__ import annotations

from uuid import uuid4


def new_trace_id() -> str:
    return uuid4().hex


class TrackedError(Exception):
    def __init__(self, message: str, *, error_type: str, trace_id: str | None = None) -> None:
        self.error_type = error_type
        self.trace_id = trace_id or new_trace_id()
        super().__init__(message)


class RequestError(TrackedError):
    """A remote operation failed; ``code`` is classified or passed through from the server."""

    def __init__(self, code: str, *, detail: str | None = None, trace_id: str | None = None) -> None:
        self.code = code
        self.detail = detail
        message = f"{code}: {detail}" if detail else code
        super().__init__(message, error_type="request", trace_id=trace_id)


class RelayError(TrackedError):
    def __init__(self, status_code: int, code: str, *, trace_id: str | None = None) -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(code, error_type="relay", trace_id=trace_id)


__all__ = [
    "new_trace_id",
    "TrackedError",
    "RequestError",
    "RelayError",
]
