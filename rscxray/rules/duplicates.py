"""Single-file duplicate-dependency rule and chunk-to-import matching."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from ..context import AnalysisContext, bundles_of
from ..models import Diagnostic
from ..paths import basename, paths_match, strip_extension
from ..syntax import ModuleReference
from .base import ClassifiedFile, Rule

RULE_ID = "duplicate-dependencies"


def match_chunk_import(
    chunk: str, references: Sequence[ModuleReference]
) -> Optional[ModuleReference]:
    """Find the import that most plausibly produced ``chunk``.

    Tries the exact specifier, then the chunk basename, then the chunk name
    without its extension; returns None when nothing matches.
    """
    for reference in references:
        if reference.module == chunk:
            return reference
    chunk_base = basename(chunk)
    for reference in references:
        if reference.module == chunk_base or basename(reference.module) == chunk_base:
            return reference
    stem = strip_extension(chunk_base)
    for reference in references:
        module_base = basename(reference.module)
        if stem in {reference.module, module_base, strip_extension(module_base)}:
            return reference
    return None


class DuplicateDependenciesRule(Rule):
    """Emits one coarse diagnostic per file listing every chunk shared with other components."""

    rule_id = RULE_ID

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return bool(bundles_of(context))

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        records = bundles_of(context)
        own = [record for record in records if paths_match(record.file_path, file.file_name)]
        if not own:
            return []
        own_paths = {record.normalized_path for record in own}
        own_chunks = sorted({chunk for record in own for chunk in record.chunks})

        shared: Dict[str, List[str]] = {}
        for chunk in own_chunks:
            siblings = sorted(
                {
                    record.normalized_path
                    for record in records
                    if chunk in record.chunks and record.normalized_path not in own_paths
                }
            )
            if siblings:
                shared[chunk] = siblings
        if not shared:
            return []

        listing = ", ".join(
            f"{chunk} (also imported by {', '.join(basename(path) for path in siblings)})"
            for chunk, siblings in shared.items()
        )
        imports = file.source.imports()
        anchor = match_chunk_import(next(iter(shared)), imports) or (imports[0] if imports else None)
        coarse = self.diagnostic(
            file,
            f"Duplicate dependencies: {listing}. Consider extracting shared code to a "
            "common module or using dynamic imports.",
            anchor.range if anchor is not None else None,
        )
        return [replace(coarse, packages=tuple(shared))]


__all__ = ["DuplicateDependenciesRule", "RULE_ID", "match_chunk_import"]
