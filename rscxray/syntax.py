"""Tree-sitter powered parsing of TSX/TypeScript sources.

Positions reported to callers are UTF-16 code-unit offsets, the unit editors
use, while tree-sitter itself works in UTF-8 byte offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .models import Range

_TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())
_TYPESCRIPT_LANGUAGE = Language(tree_sitter_typescript.language_typescript())

_TYPESCRIPT_EXTENSIONS = (".ts", ".mts", ".cts")

FUNCTION_NODE_TYPES = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "generator_function_declaration",
        "method_definition",
    }
)
_STRING_NODE_TYPES = frozenset({"string", "template_string"})
_SKIPPED_TOP_LEVEL = frozenset({"comment", "hash_bang_line"})


@dataclass(frozen=True)
class ModuleReference:
    """A module specifier found in an import declaration or ``require()`` call."""

    module: str
    kind: str
    node: Node
    range: Range


def language_for_file(file_name: str) -> Language:
    lower = file_name.lower()
    if lower.endswith(".d.ts") or lower.endswith(_TYPESCRIPT_EXTENSIONS):
        return _TYPESCRIPT_LANGUAGE
    return _TSX_LANGUAGE


class SourceFile:
    """Parsed view of one source file with offset conversion helpers."""

    def __init__(self, file_name: str, text: str) -> None:
        self.file_name = file_name
        self.text = text
        self.data = text.encode("utf-8")
        self._ascii = len(self.data) == len(text)
        # A parser per file keeps concurrent analyses from sharing parser state.
        parser = Parser(language_for_file(file_name))
        self.tree = parser.parse(self.data)
        self.root: Node = self.tree.root_node

    def offset(self, byte_offset: int) -> int:
        if self._ascii:
            return byte_offset
        prefix = self.data[:byte_offset].decode("utf-8", errors="ignore")
        return len(prefix.encode("utf-16-le")) // 2

    def range_of(self, node: Node) -> Range:
        return Range(self.offset(node.start_byte), self.offset(node.end_byte))

    def text_of(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.data[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def statements(self) -> List[Node]:
        return [
            child
            for child in self.root.named_children
            if child.type not in _SKIPPED_TOP_LEVEL
        ]

    def walk(self, node: Optional[Node] = None) -> Iterator[Node]:
        """Yield ``node`` and its descendants in source order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def leading_directive(self) -> Optional[str]:
        """Return the string value of the first statement when it is a bare string literal."""
        statements = self.statements()
        if not statements:
            return None
        return self.directive_of(statements[0])

    def directive_of(self, statement: Node) -> Optional[str]:
        if statement.type != "expression_statement":
            return None
        expressions = statement.named_children
        if len(expressions) != 1 or expressions[0].type != "string":
            return None
        return self.string_value(expressions[0])

    def string_value(self, node: Node) -> Optional[str]:
        if node.type not in _STRING_NODE_TYPES:
            return None
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        raw = self.text_of(node)
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in {"'", '"', "`"}:
            return raw[1:-1]
        return None

    def imports(self) -> List[ModuleReference]:
        """Return the specifiers of top-level import declarations in source order."""
        references: List[ModuleReference] = []
        for statement in self.statements():
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            if source is None:
                source = next(
                    (child for child in statement.named_children if child.type == "string"),
                    None,
                )
            if source is None or source.type != "string":
                continue
            module = self.string_value(source)
            if module is None:
                continue
            references.append(
                ModuleReference(module=module, kind="import", node=source, range=self.range_of(source))
            )
        return references

    def require_calls(self) -> List[ModuleReference]:
        """Return ``require('x')`` specifiers anywhere in the file."""
        references: List[ModuleReference] = []
        for node in self.walk():
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None or callee.type != "identifier" or self.text_of(callee) != "require":
                continue
            argument = first_argument(node)
            if argument is None or argument.type != "string":
                continue
            module = self.string_value(argument)
            if module is None:
                continue
            references.append(
                ModuleReference(module=module, kind="require", node=argument, range=self.range_of(argument))
            )
        return references

    def imported_bindings(self) -> Dict[str, str]:
        """Map local names bound by import declarations to their module specifier."""
        bindings: Dict[str, str] = {}
        for reference in self.imports():
            statement = reference.node.parent
            if statement is None:
                continue
            for clause in statement.named_children:
                if clause.type != "import_clause":
                    continue
                for name in self._clause_names(clause):
                    bindings[name] = reference.module
        return bindings

    def _clause_names(self, clause: Node) -> Iterator[str]:
        for child in clause.named_children:
            if child.type == "identifier":
                yield self.text_of(child)
            elif child.type == "namespace_import":
                for inner in child.named_children:
                    if inner.type == "identifier":
                        yield self.text_of(inner)
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    alias = specifier.child_by_field_name("alias")
                    name = specifier.child_by_field_name("name")
                    chosen = alias or name
                    if chosen is not None:
                        yield self.text_of(chosen)

    def exported_constants(self) -> Dict[str, Tuple[Any, Node]]:
        """Return literal values of top-level ``export const name = <literal>`` declarations."""
        constants: Dict[str, Tuple[Any, Node]] = {}
        for statement in self.statements():
            if statement.type != "export_statement":
                continue
            declaration = statement.child_by_field_name("declaration")
            if declaration is None or declaration.type != "lexical_declaration":
                continue
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                value_node = declarator.child_by_field_name("value")
                if name_node is None or value_node is None:
                    continue
                value = self.literal_value(value_node)
                if value is not None:
                    constants[self.text_of(name_node)] = (value, declarator)
        return constants

    def literal_value(self, node: Node) -> Any:
        if node.type in _STRING_NODE_TYPES:
            return self.string_value(node)
        if node.type == "number":
            raw = self.text_of(node).replace("_", "")
            try:
                return int(raw)
            except ValueError:
                try:
                    return float(raw)
                except ValueError:
                    return None
        if node.type == "true":
            return True
        if node.type == "false":
            return False
        return None


def first_argument(call: Node) -> Optional[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    return arguments.named_children[0]


def is_async(function: Node) -> bool:
    return any(child.type == "async" for child in function.children)


def function_body(function: Node) -> Optional[Node]:
    return function.child_by_field_name("body")


def function_name(source: SourceFile, function: Node) -> Tuple[Optional[str], Node]:
    """Return the declared or assigned name of a function and the node to point at."""
    name_node = function.child_by_field_name("name")
    if name_node is not None:
        return source.text_of(name_node), name_node
    parent = function.parent
    if parent is not None and parent.type == "variable_declarator":
        declared = parent.child_by_field_name("name")
        if declared is not None:
            return source.text_of(declared), declared
    return None, function


def is_default_export(function: Node) -> bool:
    parent = function.parent
    if parent is None or parent.type != "export_statement":
        return False
    return any(child.type == "default" for child in parent.children)


def enclosing_function(node: Node) -> Optional[Node]:
    current = node.parent
    while current is not None:
        if current.type in FUNCTION_NODE_TYPES:
            return current
        current = current.parent
    return None


def jsx_opening(element: Node) -> Optional[Node]:
    """Return the node that carries the tag name and attributes of a JSX element."""
    if element.type == "jsx_self_closing_element":
        return element
    if element.type == "jsx_element":
        opening = element.child_by_field_name("open_tag")
        if opening is not None:
            return opening
        return next(
            (child for child in element.named_children if child.type == "jsx_opening_element"),
            None,
        )
    return None


def jsx_tag_name(source: SourceFile, element: Node) -> Optional[str]:
    opening = jsx_opening(element)
    if opening is None:
        return None
    name = opening.child_by_field_name("name")
    if name is None:
        name = next(
            (
                child
                for child in opening.named_children
                if child.type in {"identifier", "member_expression", "nested_identifier"}
            ),
            None,
        )
    return source.text_of(name) if name is not None else None


def jsx_attributes(element: Node) -> List[Node]:
    opening = jsx_opening(element)
    if opening is None:
        return []
    return [child for child in opening.named_children if child.type == "jsx_attribute"]


def jsx_attribute_parts(source: SourceFile, attribute: Node) -> Tuple[str, Optional[Node]]:
    """Split a JSX attribute into its name and the value expression, if any."""
    named = attribute.named_children
    if not named:
        return "", None
    name = source.text_of(named[0])
    if len(named) < 2:
        return name, None
    value = named[-1]
    if value.type == "jsx_expression":
        inner = value.named_children
        return name, inner[0] if inner else None
    return name, value


def is_jsx_element(node: Node) -> bool:
    return node.type in {"jsx_element", "jsx_self_closing_element"}


__all__ = [
    "FUNCTION_NODE_TYPES",
    "ModuleReference",
    "SourceFile",
    "enclosing_function",
    "first_argument",
    "function_body",
    "function_name",
    "is_async",
    "is_default_export",
    "is_jsx_element",
    "jsx_attribute_parts",
    "jsx_attributes",
    "jsx_opening",
    "jsx_tag_name",
    "language_for_file",
]
