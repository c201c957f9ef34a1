"""Merges per-target diagnostics into a single per-file grouping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tree_sitter import Node

from .detector import AttributedDiagnostic, build_target_index
from .logging import get_logger
from .models import (
    DEFAULT_VERSION,
    AggregateResult,
    AnalyzedTarget,
    Diagnostic,
    DiagnosticKey,
    Location,
    Range,
    SourceTarget,
)
from .paths import PathIndex, basename, paths_match
from .rules.duplicates import RULE_ID as DUPLICATE_RULE_ID
from .rules.duplicates import match_chunk_import
from .syntax import SourceFile

_DETECTOR_CONTRIBUTOR = "detector"
_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})


def resolve_bucket(diagnostic: Diagnostic, target_key: str) -> str:
    """Pick the output bucket for a diagnostic produced while analyzing ``target_key``.

    A location matching the key (equal or ``/``-bounded suffix either way)
    stays with the target; a location naming another file goes to that
    file's basename; anything else stays with the target.
    """
    loc_file = diagnostic.loc.file if diagnostic.loc is not None else ""
    if loc_file:
        if paths_match(loc_file, target_key):
            return target_key
        name = basename(loc_file)
        if name and name != target_key:
            return name
    return target_key


def expand_duplicate_dependencies(
    diagnostics: Sequence[Diagnostic], owner: SourceTarget
) -> List[Diagnostic]:
    """Split coarse duplicate-dependency diagnostics into one per duplicated import.

    Each listed package whose import is found in the owning file becomes its
    own diagnostic ranged over that import's specifier. A coarse diagnostic
    with no matching import is kept unchanged.
    """
    expanded: List[Diagnostic] = []
    imports = None
    for diagnostic in diagnostics:
        if diagnostic.rule != DUPLICATE_RULE_ID or not diagnostic.packages:
            expanded.append(diagnostic)
            continue
        if imports is None:
            imports = SourceFile(owner.file_name, owner.code).imports()

        loc_file = diagnostic.loc.file if diagnostic.loc is not None else owner.file_name
        pieces: List[Diagnostic] = []
        used: Set[Tuple[int, int]] = set()
        for package in diagnostic.packages:
            reference = match_chunk_import(package, imports)
            if reference is None:
                continue
            span = (reference.range.start, reference.range.end)
            if span in used:
                continue
            used.add(span)
            pieces.append(
                Diagnostic(
                    rule=diagnostic.rule,
                    level=diagnostic.level,
                    message=(
                        f"'{reference.module}' is duplicated across multiple components. "
                        "Consider extracting to a shared module."
                    ),
                    loc=Location(file=loc_file, range=reference.range),
                )
            )
        expanded.extend(pieces or [diagnostic])
    return expanded


def first_import_span(source: SourceFile) -> Optional[Range]:
    """Range of the first top-level import's specifier.

    None when the file has no imports or opens its imports with a
    ``require()`` declaration.
    """
    for statement in source.statements():
        if statement.type == "import_statement":
            specifier = statement.child_by_field_name("source")
            if specifier is None or specifier.type != "string":
                return None
            return source.range_of(specifier)
        if statement.type in _DECLARATION_TYPES and _declares_require(source, statement):
            return None
    return None


def _declares_require(source: SourceFile, statement: Node) -> bool:
    for declarator in statement.named_children:
        value = declarator.child_by_field_name("value") if declarator.type == "variable_declarator" else None
        if value is None or value.type != "call_expression":
            continue
        if source.text_of(value.child_by_field_name("function")) == "require":
            return True
    return False


class ContextFileAnchors:
    """Positions rangeless diagnostics about other submitted files at their first import."""

    def __init__(self, targets: Sequence[SourceTarget]) -> None:
        self.index: PathIndex[SourceTarget] = build_target_index(targets)
        self._spans: Dict[str, Optional[Range]] = {}

    def anchor(self, diagnostic: Diagnostic, owner: Optional[SourceTarget] = None) -> Diagnostic:
        """Re-range a diagnostic naming a target other than ``owner`` that has no usable range."""
        loc = diagnostic.loc
        if loc is None or not loc.file:
            return diagnostic
        if loc.range is not None and not loc.range.is_empty:
            return diagnostic
        target = self.index.lookup(loc.file, strict=True)
        if target is None or target is owner:
            return diagnostic
        if target.file_name not in self._spans:
            self._spans[target.file_name] = first_import_span(
                SourceFile(target.file_name, target.code)
            )
        span = self._spans[target.file_name]
        if span is None:
            return diagnostic
        return replace(diagnostic, loc=replace(loc, range=span))


@dataclass
class _Buckets:
    diagnostics: Dict[str, List[Diagnostic]] = field(default_factory=dict)
    durations: Dict[str, float] = field(default_factory=dict)
    keys: Dict[str, Set[DiagnosticKey]] = field(default_factory=dict)
    credited: Set[Tuple[str, str]] = field(default_factory=set)
    discarded: int = 0

    def seed(self, bucket: str) -> None:
        if bucket not in self.diagnostics:
            self.diagnostics[bucket] = []
            self.durations[bucket] = 0.0
            self.keys[bucket] = set()

    def credit(self, bucket: str, contributor: str, duration: float) -> None:
        self.seed(bucket)
        if (bucket, contributor) in self.credited:
            return
        self.credited.add((bucket, contributor))
        self.durations[bucket] += duration

    def assign(self, bucket: str, diagnostic: Diagnostic, contributor: str, duration: float) -> None:
        self.credit(bucket, contributor, duration)
        key = diagnostic.key
        if key in self.keys[bucket]:
            self.discarded += 1
            return
        self.keys[bucket].add(key)
        self.diagnostics[bucket].append(diagnostic)

    def flatten(self) -> List[Diagnostic]:
        return [diagnostic for bucket in self.diagnostics.values() for diagnostic in bucket]


class DiagnosticAggregator:
    """Sequential reduction of analyzed targets, in caller order, into one result."""

    def __init__(self) -> None:
        self.logger = get_logger("aggregator")

    def aggregate(
        self,
        analyses: Sequence[AnalyzedTarget],
        targets: Sequence[SourceTarget],
        detected: Iterable[AttributedDiagnostic] = (),
        extra_rules: Iterable[str] = (),
    ) -> AggregateResult:
        if len(analyses) != len(targets):
            raise ValueError("Each analyzed target must correspond to one source target")

        anchors = ContextFileAnchors(targets)
        buckets = _Buckets()
        for analysis in analyses:
            buckets.seed(analysis.key)

        rules: Dict[str, None] = {}
        total_duration = 0.0
        version = DEFAULT_VERSION

        for position, (analysis, target) in enumerate(zip(analyses, targets)):
            contributor = f"target:{position}"
            total_duration += analysis.duration
            version = analysis.version or version
            for rule in analysis.rules_executed:
                rules.setdefault(rule, None)

            diagnostics = expand_duplicate_dependencies(analysis.diagnostics, target)
            if not diagnostics:
                buckets.credit(analysis.key, contributor, analysis.duration)
                continue
            for diagnostic in diagnostics:
                diagnostic = anchors.anchor(diagnostic, owner=target)
                bucket = resolve_bucket(diagnostic, analysis.key)
                buckets.assign(bucket, diagnostic, contributor, analysis.duration)

        for attributed in detected:
            buckets.assign(
                attributed.key, anchors.anchor(attributed.diagnostic), _DETECTOR_CONTRIBUTOR, 0.0
            )
        for rule in extra_rules:
            rules.setdefault(rule, None)

        if buckets.discarded:
            self.logger.debug("Discarded %d duplicate diagnostics", buckets.discarded)

        return AggregateResult(
            diagnostics=buckets.flatten(),
            diagnostics_by_file=buckets.diagnostics,
            durations_by_file=buckets.durations,
            duration=total_duration,
            rules_executed=list(rules),
            version=version,
        )

    def single(self, analysis: AnalyzedTarget, target: SourceTarget) -> AggregateResult:
        """Result for a single-target request, keyed by that target alone."""
        buckets = _Buckets()
        buckets.credit(analysis.key, "target:0", analysis.duration)
        for diagnostic in expand_duplicate_dependencies(analysis.diagnostics, target):
            buckets.assign(analysis.key, diagnostic, "target:0", analysis.duration)
        return AggregateResult(
            diagnostics=buckets.flatten(),
            diagnostics_by_file=buckets.diagnostics,
            durations_by_file=buckets.durations,
            duration=analysis.duration,
            rules_executed=list(analysis.rules_executed),
            version=analysis.version or DEFAULT_VERSION,
        )


__all__ = [
    "ContextFileAnchors",
    "DiagnosticAggregator",
    "expand_duplicate_dependencies",
    "first_import_span",
    "resolve_bucket",
]
