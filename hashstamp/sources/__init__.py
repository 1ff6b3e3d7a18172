"""Descriptor source implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Sequence, Set

from .base import DescriptorSource
from .python import PythonSource
from .tree_sitter import TREE_SITTER_AVAILABLE, TreeSitterSource

_ENTRY_POINT_GROUP = "hashstamp.sources"


def discover_sources(
    enabled: Sequence[str] | None = None,
    *,
    ignore_docstrings: bool = True,
    default_namespace: str = "Global",
) -> List[DescriptorSource]:
    """Return instantiated descriptor sources, honoring optional enabled names."""

    builtin: Dict[str, Callable[[], DescriptorSource]] = {
        "python": lambda: PythonSource(ignore_docstrings=ignore_docstrings),
        "tree_sitter": lambda: TreeSitterSource(default_namespace=default_namespace),
    }

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    sources: List[DescriptorSource] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], DescriptorSource]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, DescriptorSource):
            raise TypeError(f"Source factory for '{name}' did not return a DescriptorSource instance")
        sources.append(instance)
        seen.add(key)

    for name, factory in builtin.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - plugin import failure
            raise RuntimeError(f"Failed to load source entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> DescriptorSource:
            return _coerce_source(obj)

        _add(entry.name, _factory)

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown sources requested: {', '.join(sorted(missing))}")

    return sources


def _coerce_source(obj: object) -> DescriptorSource:
    if isinstance(obj, DescriptorSource):
        return obj
    if isinstance(obj, type) and issubclass(obj, DescriptorSource):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, DescriptorSource):
            return instance
    raise TypeError("Source entry point must be a DescriptorSource subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "DescriptorSource",
    "PythonSource",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterSource",
    "discover_sources",
]
