"""Core data models shared across hashstamp components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

STATEMENTS = "statements"
EXPRESSION = "expression"


@dataclass(frozen=True)
class SourceLocation:
    """Where a unit was declared; used for diagnostics only."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class BodyContent:
    """Raw executable content of a unit, as written in the source file."""

    kind: str
    fragments: Tuple[str, ...]
    language: str

    @classmethod
    def statements(cls, fragments, language: str) -> "BodyContent":
        return cls(kind=STATEMENTS, fragments=tuple(fragments), language=language)

    @classmethod
    def expression(cls, fragment: str, language: str) -> "BodyContent":
        return cls(kind=EXPRESSION, fragments=(fragment,), language=language)


@dataclass(frozen=True)
class UnitDescriptor:
    """A named code unit as reported by a descriptor source."""

    namespace: Optional[str]
    type_name: Optional[str]
    member_name: str
    qualified_signature: str
    body: Optional[BodyContent] = None
    location: Optional[SourceLocation] = None

    @property
    def has_symbols(self) -> bool:
        return bool(self.namespace) and bool(self.type_name) and bool(self.member_name)


@dataclass(frozen=True)
class UnitRecord:
    """A fingerprinted unit; `resolved_name` is the registry key."""

    namespace: str
    type_name: str
    member_name: str
    resolved_name: str
    qualified_signature: str
    digest: str
    location: Optional[SourceLocation] = None

    @property
    def group(self) -> Tuple[str, str]:
        return (self.namespace, self.type_name)


@dataclass(frozen=True)
class MemberStamp:
    """Leaf value of the registry."""

    digest: str
    signature: str
