"""Cross-file duplicate-dependency detection from project-wide bundle metadata.

Bundle records only say which component pulls in which chunk. To point a
diagnostic at real source, each implicated component is resolved back to a
submitted target, re-parsed, and the import that most plausibly produced
the chunk is located.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .context import AnalysisContext, bundles_of, merge_contexts
from .logging import get_logger
from .models import LEVEL_WARN, Diagnostic, Location, Range, SourceTarget
from .paths import PathIndex, basename, normalize_path
from .rules.duplicates import RULE_ID, match_chunk_import
from .syntax import ModuleReference, SourceFile

_APP_ROUTE_PATTERN = re.compile(r"^app/([^/]+)/")


@dataclass(frozen=True)
class AttributedDiagnostic:
    """A detector diagnostic together with the output bucket it belongs to."""

    key: str
    identity: Tuple[str, str, str]
    diagnostic: Diagnostic


def route_from_component_path(component_path: str) -> Optional[str]:
    """Derive ``/segment`` from an ``app/<segment>/...`` path."""
    match = _APP_ROUTE_PATTERN.match(normalize_path(component_path))
    if not match:
        return None
    return f"/{match.group(1)}"


def build_target_index(targets: Sequence[SourceTarget]) -> PathIndex[SourceTarget]:
    index: PathIndex[SourceTarget] = PathIndex()
    for target in targets:
        index.add(target.file_name, target, aliases=(target.file_key,))
    return index


def build_route_index(
    targets: Sequence[SourceTarget], shared_context: Optional[AnalysisContext]
) -> PathIndex[str]:
    """Map target paths, and the bundle paths each target lists, to its route label."""
    index: PathIndex[str] = PathIndex()
    for target in targets:
        effective = merge_contexts(shared_context, target.context)
        route = effective.route if effective is not None else None
        if not route:
            continue
        aliases = [target.file_key] + [record.file_path for record in bundles_of(target.context)]
        index.add(target.file_name, route, aliases=aliases)
    return index


class DuplicateDependencyDetector:
    """Finds chunks shared by two or more components across all targets."""

    rule_id = RULE_ID

    def __init__(self) -> None:
        self.logger = get_logger("detector")

    def detect(
        self,
        targets: Sequence[SourceTarget],
        shared_context: Optional[AnalysisContext] = None,
    ) -> List[AttributedDiagnostic]:
        chunk_components = self._reverse_index(targets, shared_context)
        if not chunk_components:
            return []

        target_index = build_target_index(targets)
        route_index = build_route_index(targets, shared_context)
        imports_cache: Dict[str, List[ModuleReference]] = {}
        emitted: Set[Tuple[str, str, str]] = set()
        results: List[AttributedDiagnostic] = []

        for chunk in sorted(chunk_components):
            components = sorted(chunk_components[chunk])
            if len(components) < 2:
                continue
            for component in components:
                others = [other for other in components if other != component]
                # Only a target naming this same file owns the finding; a same-named
                # target elsewhere still supplies source text for positioning.
                owner = target_index.lookup(component, strict=True)
                span = self._locate(chunk, owner or target_index.lookup(component), imports_cache)
                labels = sorted(set(route_index.lookup_all(component, strict=True)))
                if not labels:
                    derived = route_from_component_path(component)
                    labels = [derived] if derived else []
                for label in labels or [None]:
                    identity = (component, chunk, label or "")
                    if identity in emitted:
                        continue
                    emitted.add(identity)
                    results.append(
                        AttributedDiagnostic(
                            key=owner.file_key if owner is not None else basename(component),
                            identity=identity,
                            diagnostic=Diagnostic(
                                rule=self.rule_id,
                                level=LEVEL_WARN,
                                message=self._message(chunk, others, label),
                                loc=Location(
                                    file=owner.file_name if owner is not None else component,
                                    range=span,
                                ),
                            ),
                        )
                    )

        self.logger.debug(
            "Duplicate-dependency detector emitted %d diagnostics over %d chunks",
            len(results),
            len(chunk_components),
        )
        return results

    @staticmethod
    def _reverse_index(
        targets: Sequence[SourceTarget], shared_context: Optional[AnalysisContext]
    ) -> Dict[str, Set[str]]:
        records = bundles_of(shared_context)
        for target in targets:
            records.extend(bundles_of(target.context))
        chunk_components: Dict[str, Set[str]] = {}
        for record in records:
            for chunk in record.chunks:
                chunk_components.setdefault(chunk, set()).add(record.normalized_path)
        return chunk_components

    @staticmethod
    def _locate(
        chunk: str,
        target: Optional[SourceTarget],
        imports_cache: Dict[str, List[ModuleReference]],
    ) -> Optional[Range]:
        if target is None:
            return None
        imports = imports_cache.get(target.file_name)
        if imports is None:
            imports = SourceFile(target.file_name, target.code).imports()
            imports_cache[target.file_name] = imports
        reference = match_chunk_import(chunk, imports)
        if reference is None and imports:
            reference = imports[0]
        return reference.range if reference is not None else None

    @staticmethod
    def _message(chunk: str, others: Sequence[str], label: Optional[str]) -> str:
        route = f" in route '{label}'" if label else ""
        siblings = ", ".join(basename(other) for other in others)
        return (
            f"Duplicate dependency{route}: '{chunk}' is bundled by this file and by {siblings}, "
            "which all import this dependency separately. Consider extracting it to a shared "
            "module or loading it with a dynamic import."
        )


__all__ = [
    "AttributedDiagnostic",
    "DuplicateDependencyDetector",
    "build_route_index",
    "build_target_index",
    "route_from_component_path",
]
