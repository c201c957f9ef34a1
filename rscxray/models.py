"""Core data models shared across rscxray components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .context import AnalysisContext
from .errors import InvalidRequest

DEFAULT_VERSION = "0.6.0"

LEVEL_ERROR = "error"
LEVEL_WARN = "warn"
LEVEL_INFO = "info"

DiagnosticKey = Tuple[str, str, str, Optional[Tuple[int, int]]]


class ComponentKind(str, Enum):
    """Execution scope of a source file."""

    SERVER = "server"
    CLIENT = "client"


@dataclass(frozen=True)
class Range:
    """Half-open span of UTF-16 code units into a file's source text."""

    start: int
    end: int

    def to_dict(self) -> Dict[str, int]:
        return {"from": self.start, "to": self.end}

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end


@dataclass(frozen=True)
class Location:
    """File reference for a diagnostic; a missing range means the whole file."""

    file: str
    range: Optional[Range] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"file": self.file}
        if self.range is not None:
            payload["range"] = self.range.to_dict()
        return payload


@dataclass(frozen=True)
class Diagnostic:
    """Immutable finding emitted by a rule or the duplicate-dependency detector.

    ``info`` level diagnostics are suggestions. ``packages`` carries the
    duplicated chunk names of a coarse duplicate-dependency diagnostic so the
    aggregator can split it per import without re-reading the message.
    """

    rule: Optional[str]
    level: str
    message: str
    loc: Optional[Location] = None
    packages: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_suggestion(self) -> bool:
        return self.level == LEVEL_INFO

    @property
    def key(self) -> DiagnosticKey:
        loc_file = self.loc.file if self.loc is not None else ""
        span = None
        if self.loc is not None and self.loc.range is not None:
            span = (self.loc.range.start, self.loc.range.end)
        return (self.rule or "suggestion", self.message, loc_file, span)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.rule is not None:
            payload["rule"] = self.rule
        payload["level"] = self.level
        payload["message"] = self.message
        if self.loc is not None:
            payload["loc"] = self.loc.to_dict()
        return payload


@dataclass(frozen=True)
class SourceTarget:
    """One file submitted for analysis."""

    file_key: str
    file_name: str
    code: str
    context: Optional[AnalysisContext] = None

    @classmethod
    def from_mapping(cls, payload: Any) -> "SourceTarget":
        """Build a target from a request mapping, rejecting structurally invalid input."""
        if not isinstance(payload, Mapping):
            raise InvalidRequest("Each analysis target must include code and fileName")
        code = payload.get("code")
        file_name = payload.get("fileName")
        if not isinstance(code, str) or not isinstance(file_name, str) or not file_name:
            raise InvalidRequest("Each analysis target must include code and fileName")
        file_key = payload.get("fileKey")
        if file_key is not None and not isinstance(file_key, str):
            raise InvalidRequest("fileKey must be a string when provided")
        context = AnalysisContext.from_mapping(payload.get("context"))
        return cls(
            file_key=file_key or file_name,
            file_name=file_name,
            code=code,
            context=context,
        )


@dataclass
class AnalyzedTarget:
    """Per-target output before aggregation."""

    key: str
    file_name: str
    diagnostics: List[Diagnostic]
    duration: float
    rules_executed: List[str]
    version: str = DEFAULT_VERSION


@dataclass
class AggregateResult:
    """Merged response for one or many analysis targets."""

    diagnostics: List[Diagnostic]
    diagnostics_by_file: Dict[str, List[Diagnostic]]
    durations_by_file: Dict[str, float]
    duration: float
    rules_executed: List[str]
    version: str = DEFAULT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "diagnosticsByFile": {
                key: [diag.to_dict() for diag in diags]
                for key, diags in self.diagnostics_by_file.items()
            },
            "durationsByFile": dict(self.durations_by_file),
            "duration": self.duration,
            "rulesExecuted": list(self.rules_executed),
            "version": self.version,
        }


__all__ = [
    "AggregateResult",
    "AnalyzedTarget",
    "ComponentKind",
    "DEFAULT_VERSION",
    "Diagnostic",
    "DiagnosticKey",
    "LEVEL_ERROR",
    "LEVEL_INFO",
    "LEVEL_WARN",
    "Location",
    "Range",
    "SourceTarget",
]
