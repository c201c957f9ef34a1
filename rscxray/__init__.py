"""Static analysis for React Server Component codebases."""

from .classify import classify
from .context import AnalysisContext, BundleRecord, is_route_segment_file, sanitize_context
from .errors import InternalError, InvalidRequest
from .models import (
    DEFAULT_VERSION,
    AggregateResult,
    AnalyzedTarget,
    ComponentKind,
    Diagnostic,
    Location,
    Range,
    SourceTarget,
)
from .orchestrator import Orchestrator

__version__ = DEFAULT_VERSION

__all__ = [
    "AggregateResult",
    "AnalysisContext",
    "AnalyzedTarget",
    "BundleRecord",
    "ComponentKind",
    "Diagnostic",
    "InternalError",
    "InvalidRequest",
    "Location",
    "Orchestrator",
    "Range",
    "SourceTarget",
    "classify",
    "is_route_segment_file",
    "sanitize_context",
]
