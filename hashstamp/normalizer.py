"""Whitespace-insensitive rendering of unit bodies."""

from __future__ import annotations

import ast
import re
import textwrap
from typing import Callable, Dict, List, Optional

from .models import EXPRESSION, BodyContent

_TOKEN_PATTERN = re.compile(
    r"""
     (?P<comment>//[^\r\n]*|/\*.*?\*/)
    |(?P<string>"{3}.*?"{3}|(?:\$*@\$*)"(?:[^"]|"")*"|\$*"(?:[^"\\\r\n]|\\.)*"|'(?:[^'\\\r\n]|\\.)*')
    |(?P<number>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?\w*)
    |(?P<word>@?[^\W\d][\w$]*|\$)
    |(?P<op><<=|\?\?=|\.\.\.|->|=>|==|!=|<=|&&|\|\||\?\?|::|\+\+|--|\+=|-=|\*=|/=|%=|&=|\|=|\^=|<<|\.\.)
    |(?P<space>\s+)
    |(?P<punct>.)
    """,
    re.VERBOSE | re.DOTALL,
)

Renderer = Callable[[str, str], str]


class NormalizationError(ValueError):
    """Raised when a body fragment cannot be rendered canonically."""


def normalize(body: Optional[BodyContent]) -> str:
    """Return the canonical text of `body`; absent bodies normalize to ""."""
    if body is None:
        return ""
    renderer = _RENDERERS.get(body.language, render_tokens)
    rendered: List[str] = []
    for fragment in body.fragments:
        text = renderer(fragment, body.kind).strip()
        if text:
            rendered.append(text)
    return "\n".join(rendered).strip()


def render_python(fragment: str, kind: str) -> str:
    """Render Python source through the standard AST so formatting and comments vanish."""
    try:
        if kind == EXPRESSION:
            return ast.unparse(ast.parse(f"({fragment.strip()})", mode="eval"))
        source = textwrap.dedent(fragment)
        if source[:1] in (" ", "\t"):
            # String literal lines left of the statement's column block dedent.
            block = ast.parse("if True:\n" + source)
            return "\n".join(ast.unparse(node) for node in block.body[0].body)  # type: ignore[attr-defined]
        return ast.unparse(ast.parse(source))
    except (SyntaxError, ValueError) as exc:
        raise NormalizationError(f"Cannot parse Python fragment: {exc}") from exc


def render_tokens(fragment: str, kind: str) -> str:
    """Render C-family source as single-space separated tokens without comments."""
    tokens = tokenize(fragment)
    if kind == EXPRESSION:
        while tokens and tokens[-1] == ";":
            tokens.pop()
    return " ".join(tokens)


def tokenize(fragment: str) -> List[str]:
    tokens: List[str] = []
    for match in _TOKEN_PATTERN.finditer(fragment):
        group = match.lastgroup
        if group in ("comment", "space"):
            continue
        tokens.append(match.group())
    return tokens


_RENDERERS: Dict[str, Renderer] = {
    "python": render_python,
}


__all__ = ["NormalizationError", "normalize", "render_python", "render_tokens", "tokenize"]
