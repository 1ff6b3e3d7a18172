"""Collision-safe naming of units within their enclosing type."""

from __future__ import annotations

import re
from collections import defaultdict
from concurrent.futures import Executor
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import UnitRecord

_UNSAFE_CHARS = re.compile(r"\W")


class UnresolvedCollisionError(ValueError):
    """Raised when qualified names still collide inside one type."""

    def __init__(self, namespace: str, type_name: str, signatures: Sequence[str]) -> None:
        self.namespace = namespace
        self.type_name = type_name
        self.signatures = list(signatures)
        joined = ", ".join(self.signatures)
        super().__init__(f"Unresolved member collision in {namespace}.{type_name}: {joined}")


def identifier_safe(signature: str) -> str:
    """Replace identifier-unsafe characters with `_` and drop the trailing underscore run."""
    return _UNSAFE_CHARS.sub("_", signature).rstrip("_")


def group_records(records: Iterable[UnitRecord]) -> Dict[Tuple[str, str], List[UnitRecord]]:
    grouped: Dict[Tuple[str, str], List[UnitRecord]] = defaultdict(list)
    for record in records:
        grouped[record.group].append(record)
    return grouped


def resolve_group(records: Sequence[UnitRecord]) -> List[UnitRecord]:
    """Qualify colliding simple names within a single (namespace, type) group."""
    counts: Dict[str, int] = defaultdict(int)
    for record in records:
        counts[record.member_name] += 1

    resolved: List[UnitRecord] = []
    by_name: Dict[str, List[UnitRecord]] = defaultdict(list)
    for record in records:
        if counts[record.member_name] > 1:
            record = replace(record, resolved_name=identifier_safe(record.qualified_signature))
        else:
            record = replace(record, resolved_name=record.member_name)
        by_name[record.resolved_name].append(record)
        resolved.append(record)

    for name, clashing in by_name.items():
        if len(clashing) > 1:
            first = clashing[0]
            raise UnresolvedCollisionError(
                first.namespace,
                first.type_name,
                [record.qualified_signature for record in clashing],
            )
    return resolved


def resolve(records: Iterable[UnitRecord], executor: Executor | None = None) -> List[UnitRecord]:
    """Resolve every (namespace, type) group; groups are independent of each other."""
    groups = list(group_records(records).values())
    if executor is None:
        results = [resolve_group(group) for group in groups]
    else:
        results = list(executor.map(resolve_group, groups))
    return [record for group in results for record in group]


__all__ = [
    "UnresolvedCollisionError",
    "group_records",
    "identifier_safe",
    "resolve",
    "resolve_group",
]
