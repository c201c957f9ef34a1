"""Flags async server components that can suspend without a Suspense boundary."""

from __future__ import annotations

from typing import Dict, List, Optional

from tree_sitter import Node

from ..context import AnalysisContext
from ..models import Diagnostic
from ..syntax import (
    FUNCTION_NODE_TYPES,
    SourceFile,
    function_body,
    function_name,
    is_async,
    is_default_export,
    is_jsx_element,
    jsx_tag_name,
)
from .base import ClassifiedFile, Rule

SUSPENSE_TAGS = frozenset({"Suspense", "React.Suspense"})


def _awaits(body: Node) -> bool:
    stack = list(body.children)
    while stack:
        node = stack.pop()
        if node.type == "await_expression":
            return True
        if node.type in FUNCTION_NODE_TYPES:
            continue
        stack.extend(node.children)
    return False


def _is_exported(function: Node) -> bool:
    current: Optional[Node] = function.parent
    while current is not None and current.type in {"variable_declarator", "lexical_declaration"}:
        current = current.parent
    return current is not None and current.type == "export_statement"


def _inside_suspense(source: SourceFile, element: Node) -> bool:
    current = element.parent
    while current is not None:
        if is_jsx_element(current) and jsx_tag_name(source, current) in SUSPENSE_TAGS:
            return True
        current = current.parent
    return False


class SuspenseBoundaryRule(Rule):
    rule_id = "suspense-boundary-missing"

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return not file.is_client

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        source = file.source
        components: Dict[str, Node] = {}
        anchors: Dict[str, Node] = {}
        exported: Dict[str, bool] = {}
        for node in source.walk():
            if node.type not in FUNCTION_NODE_TYPES or not is_async(node):
                continue
            name, anchor = function_name(source, node)
            default = is_default_export(node)
            if name is None and not default:
                continue
            label = name or "default export"
            if not default and not label[:1].isupper():
                continue
            body = function_body(node)
            if body is None or not _awaits(body):
                continue
            components[label] = node
            anchors[label] = anchor
            exported[label] = default or _is_exported(node)

        if not components:
            return []

        renders: Dict[str, List[Node]] = {label: [] for label in components}
        for node in source.walk():
            if is_jsx_element(node):
                tag = jsx_tag_name(source, node)
                if tag in renders:
                    renders[tag].append(node)

        diagnostics: List[Diagnostic] = []
        for label in components:
            unwrapped = [element for element in renders[label] if not _inside_suspense(source, element)]
            if unwrapped:
                for element in unwrapped:
                    diagnostics.append(
                        self.diagnostic(
                            file,
                            f"Async server component '{label}' is rendered without a <Suspense> "
                            "boundary, so it blocks the whole response. Wrap it in <Suspense> "
                            "with a fallback.",
                            source.range_of(element),
                        )
                    )
            elif exported[label] and not renders[label]:
                diagnostics.append(
                    self.diagnostic(
                        file,
                        f"Async server component '{label}' awaits data without a Suspense "
                        "boundary. Add a loading.tsx for the route or render it inside "
                        "<Suspense> to stream a fallback.",
                        source.range_of(anchors[label]),
                    )
                )
        return diagnostics


__all__ = ["SuspenseBoundaryRule"]
