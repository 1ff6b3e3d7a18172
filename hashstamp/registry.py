"""Three-level namespace -> type -> member registry of unit digests."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .models import MemberStamp, UnitRecord
from .resolver import UnresolvedCollisionError

Key = Tuple[str, str, str]


@dataclass(frozen=True)
class TypeStamps:
    """Members of one type, keyed by resolved name."""

    by_member: Mapping[str, MemberStamp]


@dataclass(frozen=True)
class NamespaceStamps:
    """Types of one namespace, keyed by type name."""

    by_type: Mapping[str, TypeStamps]


class Registry:
    """Immutable lookup structure produced once per generation run."""

    def __init__(self, by_namespace: Mapping[str, NamespaceStamps]) -> None:
        self._by_namespace = MappingProxyType(dict(by_namespace))

    @property
    def by_namespace(self) -> Mapping[str, NamespaceStamps]:
        return self._by_namespace

    def lookup(self, namespace: str, type_name: str, member: str) -> MemberStamp:
        """Return the stamp for a member; raises KeyError when any key is unknown."""
        return self._by_namespace[namespace].by_type[type_name].by_member[member]

    def get(self, namespace: str, type_name: str, member: str) -> Optional[MemberStamp]:
        try:
            return self.lookup(namespace, type_name, member)
        except KeyError:
            return None

    def iter_members(self) -> Iterator[Tuple[str, str, str, MemberStamp]]:
        for namespace, ns_stamps in self._by_namespace.items():
            for type_name, type_stamps in ns_stamps.by_type.items():
                for member, stamp in type_stamps.by_member.items():
                    yield namespace, type_name, member, stamp

    def namespace_count(self) -> int:
        return len(self._by_namespace)

    def type_count(self) -> int:
        return sum(len(ns.by_type) for ns in self._by_namespace.values())

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_members())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 3:
            return False
        return self.get(*key) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Registry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"Registry(namespaces={self.namespace_count()}, "
            f"types={self.type_count()}, members={len(self)})"
        )

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Dict[str, str]]]]:
        """Return a plain nested dict copy, suitable for JSON or templating."""
        result: Dict[str, Dict[str, Dict[str, Dict[str, str]]]] = {}
        for namespace, type_name, member, stamp in self.iter_members():
            result.setdefault(namespace, {}).setdefault(type_name, {})[member] = {
                "digest": stamp.digest,
                "signature": stamp.signature,
            }
        return result

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> "Registry":
        """Rebuild a registry from `to_dict` output or `(digest, signature)` leaves."""
        builder = _TreeBuilder()
        for namespace, types in data.items():
            for type_name, members in types.items():
                for member, leaf in members.items():
                    if isinstance(leaf, Mapping):
                        stamp = MemberStamp(digest=leaf["digest"], signature=leaf["signature"])
                    else:
                        digest, signature = leaf
                        stamp = MemberStamp(digest=digest, signature=signature)
                    builder.add(namespace, type_name, member, stamp)
        return builder.freeze()


def build(records: Iterable[UnitRecord]) -> Registry:
    """Aggregate resolved records into a registry; duplicate keys are an error."""
    builder = _TreeBuilder()
    for record in records:
        builder.add(
            record.namespace,
            record.type_name,
            record.resolved_name,
            MemberStamp(digest=record.digest, signature=record.qualified_signature),
        )
    return builder.freeze()


class _TreeBuilder:
    def __init__(self) -> None:
        self._tree: Dict[str, Dict[str, Dict[str, MemberStamp]]] = {}

    def add(self, namespace: str, type_name: str, member: str, stamp: MemberStamp) -> None:
        members = self._tree.setdefault(namespace, {}).setdefault(type_name, {})
        existing = members.get(member)
        if existing is not None:
            raise UnresolvedCollisionError(
                namespace, type_name, [existing.signature, stamp.signature]
            )
        members[member] = stamp

    def freeze(self) -> Registry:
        by_namespace = {
            namespace: NamespaceStamps(
                by_type=MappingProxyType(
                    {
                        type_name: TypeStamps(by_member=MappingProxyType(dict(members)))
                        for type_name, members in types.items()
                    }
                )
            )
            for namespace, types in self._tree.items()
        }
        return Registry(by_namespace)


@dataclass
class RegistryDiff:
    """Keys that differ between a previous and a current registry."""

    added: List[Key] = field(default_factory=list)
    removed: List[Key] = field(default_factory=list)
    changed: List[Key] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def lines(self) -> List[str]:
        output: List[str] = []
        for prefix, keys in (("+", self.added), ("-", self.removed), ("~", self.changed)):
            output.extend(f"{prefix} {'.'.join(key)}" for key in keys)
        return output


def diff(previous: Registry, current: Registry) -> RegistryDiff:
    """Compare two registries member by member."""
    old = {(ns, t, m): stamp.digest for ns, t, m, stamp in previous.iter_members()}
    new = {(ns, t, m): stamp.digest for ns, t, m, stamp in current.iter_members()}
    return RegistryDiff(
        added=sorted(set(new) - set(old)),
        removed=sorted(set(old) - set(new)),
        changed=sorted(key for key in set(old) & set(new) if old[key] != new[key]),
    )


__all__ = [
    "NamespaceStamps",
    "Registry",
    "RegistryDiff",
    "TypeStamps",
    "build",
    "diff",
]
