"""Flags client components whose bundle weight exceeds the configured budget."""

from __future__ import annotations

from typing import List, Optional

from ..config import DEFAULT_BUNDLE_THRESHOLD_BYTES
from ..context import AnalysisContext, BundleRecord, bundles_of
from ..models import Diagnostic
from ..paths import PathIndex
from .base import ClassifiedFile, Rule


def find_bundle(context: Optional[AnalysisContext], file_name: str) -> Optional[BundleRecord]:
    """Return the bundle record naming ``file_name`` itself, never a same-named sibling."""
    index: PathIndex[BundleRecord] = PathIndex()
    for record in bundles_of(context):
        index.add(record.file_path, record)
    return index.lookup(file_name, strict=True)


def format_kb(size: float) -> str:
    return f"{size / 1024:.1f} KB"


class ClientComponentOversizedRule(Rule):
    rule_id = "client-component-oversized"

    def __init__(self, threshold_bytes: int = DEFAULT_BUNDLE_THRESHOLD_BYTES) -> None:
        self.threshold_bytes = threshold_bytes

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return file.is_client and bool(bundles_of(context))

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        record = find_bundle(context, file.file_name)
        if record is None or record.total_bytes is None:
            return []
        if record.total_bytes <= self.threshold_bytes:
            return []
        statements = file.source.statements()
        span = file.source.range_of(statements[0]) if statements else None
        return [
            self.diagnostic(
                file,
                f"Client component bundle is {format_kb(record.total_bytes)} "
                f"({len(record.chunks)} chunks), over the {format_kb(self.threshold_bytes)} budget. "
                "Split it with dynamic imports or move non-interactive parts to a server component.",
                span,
            )
        ]


__all__ = ["ClientComponentOversizedRule", "find_bundle"]
