"""Flags server-only modules imported from client components."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional

from ..config import DEFAULT_FORBIDDEN_MODULES
from ..context import AnalysisContext
from ..models import LEVEL_ERROR, Diagnostic
from .base import ClassifiedFile, Rule

_NODE_PREFIX = "node:"


def normalize_module(module: str) -> str:
    return module[len(_NODE_PREFIX) :] if module.startswith(_NODE_PREFIX) else module


class ClientForbiddenImportRule(Rule):
    """One error per denylisted specifier, ranged over the string literal only."""

    rule_id = "client-forbidden-import"
    level = LEVEL_ERROR

    def __init__(self, forbidden_modules: Optional[Iterable[str]] = None) -> None:
        modules = DEFAULT_FORBIDDEN_MODULES if forbidden_modules is None else forbidden_modules
        self.forbidden_modules: FrozenSet[str] = frozenset(modules)

    def is_forbidden(self, module: str) -> bool:
        return module in self.forbidden_modules or normalize_module(module) in self.forbidden_modules

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return file.is_client

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        references = file.source.imports() + file.source.require_calls()
        references.sort(key=lambda reference: reference.range.start)
        return [
            self.diagnostic(
                file,
                f"Client components must not import '{reference.module}'.",
                reference.range,
            )
            for reference in references
            if self.is_forbidden(reference.module)
        ]


__all__ = ["ClientForbiddenImportRule", "normalize_module"]
