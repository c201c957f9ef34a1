"""Error taxonomy surfaced by the analysis engine."""

from __future__ import annotations

INVALID_REQUEST = "INVALID_REQUEST"
INTERNAL_ERROR = "INTERNAL_ERROR"


class AnalysisError(RuntimeError):
    """Base class for failures reported to callers with a stable error code."""

    code = INTERNAL_ERROR

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


class InvalidRequest(AnalysisError):
    """Raised when a request is malformed; no analysis has been performed."""

    code = INVALID_REQUEST


class InternalError(AnalysisError):
    """Raised when an unexpected exception escapes the orchestration boundary."""

    code = INTERNAL_ERROR


__all__ = [
    "AnalysisError",
    "INTERNAL_ERROR",
    "INVALID_REQUEST",
    "InternalError",
    "InvalidRequest",
]
