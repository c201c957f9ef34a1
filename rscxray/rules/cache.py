"""Suggests React ``cache()`` for identical data fetches repeated within one server scope."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from ..context import AnalysisContext
from ..models import LEVEL_INFO, Diagnostic
from ..syntax import enclosing_function, first_argument
from .base import ClassifiedFile, Rule

FETCH_FUNCTIONS = frozenset({"fetch"})


class CacheOpportunityRule(Rule):
    rule_id = "react19-cache-opportunity"
    level = LEVEL_INFO

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return not file.is_client

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        source = file.source
        # (scope start byte, url) -> calls in source order
        calls: Dict[Tuple[int, str], List[Node]] = {}
        for node in source.walk():
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None or source.text_of(callee) not in FETCH_FUNCTIONS:
                continue
            argument = first_argument(node)
            url = source.string_value(argument) if argument is not None else None
            if url is None:
                continue
            scope = enclosing_function(node)
            scope_key = scope.start_byte if scope is not None else -1
            calls.setdefault((scope_key, url), []).append(node)

        diagnostics: List[Diagnostic] = []
        for (_, url), nodes in calls.items():
            if len(nodes) < 2:
                continue
            diagnostics.append(
                self.diagnostic(
                    file,
                    f"Duplicate fetch to '{url}' ({len(nodes)} calls in the same component). "
                    "Wrap the request in React cache() to deduplicate it per request.",
                    source.range_of(nodes[1]),
                )
            )
        return diagnostics


__all__ = ["CacheOpportunityRule"]
