"""Tree-sitter powered descriptor source for C# and Java."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .base import DescriptorSource
from ..models import BodyContent, SourceLocation, UnitDescriptor

try:  # pragma: no cover - optional dependency
    from tree_sitter import Parser
    from tree_sitter_languages import get_language

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Parser = None  # type: ignore[assignment]
    get_language = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


_LANGUAGE_BY_SUFFIX = {
    ".cs": "c_sharp",
    ".java": "java",
}

_NAMESPACE_NODES = {"namespace_declaration"}
_FILE_NAMESPACE_NODES = {"file_scoped_namespace_declaration"}
_TYPE_NODES = {
    "class_declaration",
    "struct_declaration",
    "record_declaration",
    "record_struct_declaration",
    "interface_declaration",
    "enum_declaration",
}
_CONTAINER_NODES = {"declaration_list", "enum_body_declarations"}
_COMMENT_NODES = {"comment", "line_comment", "block_comment"}
_PARAMETER_NODES = {"parameter", "formal_parameter", "spread_parameter"}
_PARAMETER_SKIP = {"modifiers", "modifier", "parameter_modifier", "attribute_list", "identifier", "variable_declarator"}


class TreeSitterSource(DescriptorSource):
    """Extracts method declarations from C# and Java files using tree-sitter parsers."""

    name = "tree_sitter"

    def __init__(self, default_namespace: str = "Global", enabled: Optional[bool] = None) -> None:
        self.default_namespace = default_namespace
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parsers: Dict[str, Parser] = {}

    def supports(self, path: Path) -> bool:
        if not self._enabled:
            return False
        return path.suffix.lower() in _LANGUAGE_BY_SUFFIX

    def descriptors(self, path: Path, root: Path) -> Iterable[UnitDescriptor]:
        if not self._enabled:
            return []
        language_key = _LANGUAGE_BY_SUFFIX.get(path.suffix.lower())
        if language_key is None:
            return []
        source = path.read_text(encoding="utf-8")
        return self.parse(source, language_key, filename=path.relative_to(root).as_posix())

    def parse(self, source: str, language_key: str, filename: str = "<string>") -> List[UnitDescriptor]:
        parser = self._get_parser(language_key)
        if parser is None:
            return []
        source_bytes = source.encode("utf-8")
        tree = parser.parse(source_bytes)
        return list(self._walk(tree.root_node, source_bytes, language_key, None, [], filename))

    def _get_parser(self, language_key: str) -> Optional[Parser]:
        parser = self._parsers.get(language_key)
        if parser is not None:
            return parser
        if not TREE_SITTER_AVAILABLE:
            return None
        language = get_language(language_key)
        parser = Parser()
        parser.set_language(language)
        self._parsers[language_key] = parser
        return parser

    @staticmethod
    def _node_text(node, source_bytes) -> str:  # type: ignore[no-untyped-def]
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _walk(self, node, source_bytes, language_key, namespace, types, filename) -> Iterator[UnitDescriptor]:  # type: ignore[no-untyped-def]
        current = namespace
        for child in node.children:
            kind = child.type
            if kind in _NAMESPACE_NODES:
                nested = _join(current, self._name(child, source_bytes))
                body = child.child_by_field_name("body") or child
                yield from self._walk(body, source_bytes, language_key, nested, types, filename)
            elif kind in _FILE_NAMESPACE_NODES:
                current = _join(current, self._name(child, source_bytes))
                yield from self._walk(child, source_bytes, language_key, current, types, filename)
            elif kind == "package_declaration":
                for sub in child.named_children:
                    if sub.type in {"identifier", "scoped_identifier"}:
                        current = self._node_text(sub, source_bytes)
            elif kind in _TYPE_NODES:
                body = child.child_by_field_name("body")
                name = self._name(child, source_bytes)
                if body is not None and name:
                    yield from self._walk(body, source_bytes, language_key, current, types + [name], filename)
            elif kind in _CONTAINER_NODES:
                yield from self._walk(child, source_bytes, language_key, current, types, filename)
            elif kind == "method_declaration":
                yield self._method(child, source_bytes, language_key, current, types, filename)

    def _method(self, node, source_bytes, language_key, namespace, types, filename) -> UnitDescriptor:  # type: ignore[no-untyped-def]
        name = self._name(node, source_bytes)
        parameters = node.child_by_field_name("parameters")
        parameter_types: List[str] = []
        if parameters is not None:
            for param in parameters.named_children:
                if param.type in _PARAMETER_NODES:
                    parameter_types.append(self._parameter_type(param, source_bytes))
        return UnitDescriptor(
            namespace=namespace or self.default_namespace,
            type_name=types[-1] if types else None,
            member_name=name,
            qualified_signature=f"{name}({', '.join(parameter_types)})",
            body=self._body(node, source_bytes, language_key),
            location=SourceLocation(filename, node.start_point[0] + 1),
        )

    def _body(self, node, source_bytes, language_key) -> Optional[BodyContent]:  # type: ignore[no-untyped-def]
        for child in node.children:
            if child.type == "block":
                statements = [
                    self._node_text(statement, source_bytes)
                    for statement in child.named_children
                    if statement.type not in _COMMENT_NODES
                ]
                return BodyContent.statements(statements, language_key)
            if child.type == "arrow_expression_clause":
                for expression in child.named_children:
                    if expression.type not in _COMMENT_NODES:
                        return BodyContent.expression(self._node_text(expression, source_bytes), language_key)
        return None

    def _parameter_type(self, param, source_bytes) -> str:  # type: ignore[no-untyped-def]
        type_node = param.child_by_field_name("type")
        if type_node is None:
            for sub in param.named_children:
                if sub.type not in _PARAMETER_SKIP:
                    type_node = sub
                    break
        if type_node is None:
            return "?"
        text = " ".join(self._node_text(type_node, source_bytes).split())
        if param.type == "spread_parameter":
            text += "..."
        return text

    def _name(self, node, source_bytes) -> str:  # type: ignore[no-untyped-def]
        name_node = node.child_by_field_name("name")
        return self._node_text(name_node, source_bytes) if name_node is not None else ""


def _join(namespace: Optional[str], name: str) -> str:
    if not namespace:
        return name
    return f"{namespace}.{name}" if name else namespace


__all__ = ["TreeSitterSource", "TREE_SITTER_AVAILABLE"]
