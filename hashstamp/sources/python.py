"""Descriptor source for Python modules, built on the standard `ast` module."""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from .base import DescriptorSource
from ..logging import get_logger
from ..models import BodyContent, SourceLocation, UnitDescriptor

_LANGUAGE = "python"
_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


class PythonSource(DescriptorSource):
    """Reports methods and class-level lambdas declared in Python classes."""

    name = "python"

    def __init__(self, ignore_docstrings: bool = True) -> None:
        self.ignore_docstrings = ignore_docstrings
        self.logger = get_logger("sources.python")

    def supports(self, path: Path) -> bool:
        return path.suffix == ".py"

    def descriptors(self, path: Path, root: Path) -> Iterable[UnitDescriptor]:
        namespace = module_name(path, root)
        if namespace is None:
            self.logger.debug("Skipping %s: path is not an importable module", path)
            return []
        source = path.read_text(encoding="utf-8")
        return self.parse(source, namespace, filename=path.relative_to(root).as_posix())

    def parse(self, source: str, namespace: str, filename: str = "<string>") -> List[UnitDescriptor]:
        """Return descriptors for every function in `source`, attributed to `namespace`."""
        tree = ast.parse(source, filename=filename)
        lines = source.encode("utf-8").splitlines(keepends=True)
        return list(self._walk(tree.body, namespace, [], lines, filename))

    def _walk(
        self,
        body: Sequence[ast.stmt],
        namespace: str,
        classes: List[str],
        lines: List[bytes],
        filename: str,
    ) -> Iterator[UnitDescriptor]:
        type_name = classes[-1] if classes else None
        for node in body:
            if isinstance(node, ast.ClassDef):
                yield from self._walk(node.body, namespace, classes + [node.name], lines, filename)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                yield self._function(node, namespace, type_name, lines, filename)
            elif isinstance(node, (ast.Assign, ast.AnnAssign)) and type_name:
                descriptor = self._lambda(node, namespace, type_name, lines, filename)
                if descriptor is not None:
                    yield descriptor
            elif isinstance(node, ast.If):
                yield from self._walk(node.body + node.orelse, namespace, classes, lines, filename)
            elif isinstance(node, ast.Try):
                blocks = node.body + node.orelse + node.finalbody
                for handler in node.handlers:
                    blocks = blocks + handler.body
                yield from self._walk(blocks, namespace, classes, lines, filename)

    def _function(
        self,
        node: _FunctionNode,
        namespace: str,
        type_name: Optional[str],
        lines: List[bytes],
        filename: str,
    ) -> UnitDescriptor:
        is_static = any(_decorator_name(d) == "staticmethod" for d in node.decorator_list)
        implicit_first = type_name is not None and not is_static
        return UnitDescriptor(
            namespace=namespace,
            type_name=type_name,
            member_name=node.name,
            qualified_signature=_signature(node.name, node.args, implicit_first),
            body=self._body(node.body, lines),
            location=SourceLocation(filename, node.lineno),
        )

    def _lambda(
        self,
        node: Union[ast.Assign, ast.AnnAssign],
        namespace: str,
        type_name: str,
        lines: List[bytes],
        filename: str,
    ) -> Optional[UnitDescriptor]:
        if not isinstance(node.value, ast.Lambda):
            return None
        targets = node.targets if isinstance(node, ast.Assign) else [node.target]
        if len(targets) != 1 or not isinstance(targets[0], ast.Name):
            return None
        name = targets[0].id
        lambda_node = node.value
        return UnitDescriptor(
            namespace=namespace,
            type_name=type_name,
            member_name=name,
            qualified_signature=_signature(name, lambda_node.args, True),
            body=BodyContent.expression(_segment(lines, lambda_node.body), _LANGUAGE),
            location=SourceLocation(filename, node.lineno),
        )

    def _body(self, statements: Sequence[ast.stmt], lines: List[bytes]) -> Optional[BodyContent]:
        statements = list(statements)
        if self.ignore_docstrings and statements and _is_docstring(statements[0]):
            statements = statements[1:]
        if not statements or (len(statements) == 1 and _is_ellipsis(statements[0])):
            return None
        return BodyContent.statements((_segment(lines, stmt) for stmt in statements), _LANGUAGE)


def module_name(path: Path, root: Path) -> Optional[str]:
    """Return the dotted module path of `path` relative to `root`."""
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    if not parts:
        parts = [root.name]
    if not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


def _signature(name: str, args: ast.arguments, implicit_first: bool) -> str:
    positional = list(args.posonlyargs) + list(args.args)
    if implicit_first and positional:
        positional = positional[1:]
    rendered = [_annotation(arg) for arg in positional]
    if args.vararg is not None:
        rendered.append("*" + _annotation(args.vararg))
    rendered.extend(_annotation(arg) for arg in args.kwonlyargs)
    if args.kwarg is not None:
        rendered.append("**" + _annotation(args.kwarg))
    return f"{name}({', '.join(rendered)})"


def _annotation(arg: ast.arg) -> str:
    if arg.annotation is None:
        return "Any"
    return ast.unparse(arg.annotation)


def _decorator_name(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def _is_ellipsis(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and node.value.value is Ellipsis
    )


def _segment(lines: List[bytes], node: ast.AST) -> str:
    """Return the raw source of `node`, decorators included, padded to its own column."""
    start_line, start_col = node.lineno, node.col_offset  # type: ignore[attr-defined]
    decorators = getattr(node, "decorator_list", None)
    if decorators:
        first = min(decorators, key=lambda d: (d.lineno, d.col_offset))
        start_line = first.lineno
        start_col = lines[start_line - 1].rfind(b"@", 0, first.col_offset)
    end_line, end_col = node.end_lineno, node.end_col_offset  # type: ignore[attr-defined]

    chunk = list(lines[start_line - 1 : end_line])
    prefix = chunk[0][:start_col]
    padding = prefix if prefix.isspace() else b" " * start_col
    if len(chunk) == 1:
        chunk[0] = padding + chunk[0][start_col:end_col]
    else:
        chunk[0] = padding + chunk[0][start_col:]
        chunk[-1] = chunk[-1][:end_col]
    return b"".join(chunk).decode("utf-8")


__all__ = ["PythonSource", "module_name"]
