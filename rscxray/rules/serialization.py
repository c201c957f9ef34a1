"""Flags non-serializable props passed from server code into client components."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from tree_sitter import Node

from ..classify import SERVER_DIRECTIVE
from ..context import AnalysisContext
from ..models import LEVEL_ERROR, Diagnostic
from ..paths import basename, normalize_path, paths_match, strip_extension
from ..syntax import (
    SourceFile,
    function_body,
    is_jsx_element,
    jsx_attribute_parts,
    jsx_attributes,
    jsx_tag_name,
)
from .base import ClassifiedFile, Rule

_INLINE_FUNCTIONS = frozenset({"arrow_function", "function_expression", "function"})
_SERIALIZABLE_CONSTRUCTORS = frozenset(
    {"Date", "Map", "Set", "Promise", "Uint8Array", "Int8Array", "Float32Array", "Float64Array"}
)


def matches_client_path(specifier: str, client_paths: Iterable[str]) -> bool:
    """Return True when an import specifier refers to one of the known client component paths."""
    normalized = strip_extension(normalize_path(specifier))
    name = strip_extension(basename(specifier))
    for candidate in client_paths:
        other = strip_extension(normalize_path(candidate))
        if not other:
            continue
        if paths_match(normalized, other):
            return True
        # Bare component names match any import ending in that module name.
        if "/" not in other and name == other:
            return True
    return False


class SerializationBoundaryRule(Rule):
    """Functions, class instances and symbols cannot be sent to client components."""

    rule_id = "serialization-boundary-violation"
    level = LEVEL_ERROR

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return not file.is_client

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        client_paths = list(context.client_component_paths or ()) if context else []
        if not client_paths:
            return []
        source = file.source
        client_bindings = {
            local
            for local, module in source.imported_bindings().items()
            if matches_client_path(module, client_paths)
        }
        if not client_bindings:
            return []

        file_is_actions = source.leading_directive() == SERVER_DIRECTIVE
        local_functions = self._local_functions(source)

        diagnostics: List[Diagnostic] = []
        for node in source.walk():
            if not is_jsx_element(node):
                continue
            tag = jsx_tag_name(source, node)
            if not tag or tag.split(".", 1)[0] not in client_bindings:
                continue
            for attribute in jsx_attributes(node):
                name, value = jsx_attribute_parts(source, attribute)
                if value is None:
                    continue
                reason = self._non_serializable_reason(
                    source, value, local_functions, file_is_actions
                )
                if reason is None:
                    continue
                diagnostics.append(
                    self.diagnostic(
                        file,
                        f"Prop '{name}' passed to client component <{tag}> is not serializable "
                        f"({reason}). Only serializable values can cross the server/client "
                        "boundary; pass a Server Action or move this logic into the client component.",
                        source.range_of(attribute),
                    )
                )
        return diagnostics

    def _local_functions(self, source: SourceFile) -> Dict[str, Node]:
        functions: Dict[str, Node] = {}
        for node in source.walk():
            if node.type in {"function_declaration", "generator_function_declaration"}:
                name = node.child_by_field_name("name")
                if name is not None:
                    functions[source.text_of(name)] = node
            elif node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
                if name is not None and value is not None and value.type in _INLINE_FUNCTIONS:
                    functions[source.text_of(name)] = value
        return functions

    def _non_serializable_reason(
        self,
        source: SourceFile,
        value: Node,
        local_functions: Dict[str, Node],
        file_is_actions: bool,
    ) -> Optional[str]:
        if value.type in _INLINE_FUNCTIONS:
            if file_is_actions or self._is_server_action(source, value):
                return None
            return "inline function"
        if value.type == "identifier":
            target = local_functions.get(source.text_of(value))
            if target is None or file_is_actions or self._is_server_action(source, target):
                return None
            return f"function '{source.text_of(value)}'"
        if value.type == "new_expression":
            constructor = source.text_of(value.child_by_field_name("constructor"))
            if constructor in _SERIALIZABLE_CONSTRUCTORS:
                return None
            return f"instance of {constructor or 'a class'}"
        if value.type == "call_expression":
            callee = source.text_of(value.child_by_field_name("function"))
            if callee == "Symbol":
                return "symbol"
        return None

    @staticmethod
    def _is_server_action(source: SourceFile, function: Node) -> bool:
        body = function_body(function)
        if body is None or body.type != "statement_block":
            return False
        statements = [child for child in body.named_children if child.type != "comment"]
        return bool(statements) and source.directive_of(statements[0]) == SERVER_DIRECTIVE


__all__ = ["SerializationBoundaryRule", "matches_client_path"]
