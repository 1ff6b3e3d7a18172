"""Renders a registry into static constants and a runtime lookup module."""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from .registry import Registry

_TEMPLATES_DIR = Path(__file__).with_name("templates")

# Names the class statement itself assigns or that resolve through the metaclass.
_CLASS_BODY_NAMES = frozenset(
    {"__module__", "__qualname__", "__doc__", "__dict__", "__class__", "__slots__", "__weakref__"}
)


class EmissionError(ValueError):
    """Raised when the registry cannot be rendered without losing entries."""


@dataclass
class _MemberView:
    name: str
    key: str
    digest: str
    signature: str


@dataclass
class _TypeView:
    name: str
    type_name: str
    members: List[_MemberView] = field(default_factory=list)


@dataclass
class _ContainerView:
    name: str
    namespace: str
    types: List[_TypeView] = field(default_factory=list)


@dataclass(frozen=True)
class StaticArtifact:
    """Source text declaring one constant per registry member."""

    root_class: str
    source: str
    constants: Dict[Tuple[str, str, str], str]

    def attribute_path(self, namespace: str, type_name: str, member: str) -> Tuple[str, str, str]:
        """Return the attribute names under `root_class` for a registry key."""
        return (container_name(namespace), static_name(type_name), static_name(member))


@dataclass(frozen=True)
class RuntimeArtifact:
    """The registry value plus source text that rebuilds it at import time."""

    registry: Registry
    source: str


def static_name(name: str) -> str:
    """Map a registry key to the attribute name used in the static artifact."""
    if name.startswith("__") and not name.endswith("__"):
        # Class bodies would mangle `__name` to `_Owner__name`.
        return f"{name.lstrip('_')}_"
    if keyword.iskeyword(name) or name in _CLASS_BODY_NAMES:
        return f"{name}_"
    return name


def container_name(namespace: str) -> str:
    return static_name(namespace.replace(".", "_"))


class Emitter:
    """Walks the registry once and renders it through Jinja templates."""

    def __init__(self, root_class: str = "HashStamps", templates_dir: Path | None = None) -> None:
        if not root_class.isidentifier() or keyword.iskeyword(root_class):
            raise EmissionError(f"Root class name {root_class!r} is not a valid identifier")
        self.root_class = root_class
        self._env = self._create_env(templates_dir)

    def emit(self, registry: Registry) -> Tuple[StaticArtifact, RuntimeArtifact]:
        containers = self._build_views(registry)
        context = self._context(registry, containers)
        static = StaticArtifact(
            root_class=self.root_class,
            source=self._render("static.py.j2", context),
            constants={
                (container.namespace, type_view.type_name, member.key): member.digest
                for container in containers
                for type_view in container.types
                for member in type_view.members
            },
        )
        runtime = RuntimeArtifact(registry=registry, source=self._render("runtime.py.j2", context))
        return static, runtime

    def render_module(self, registry: Registry) -> str:
        """Render both artifacts into a single importable module."""
        containers = self._build_views(registry)
        return self._render("module.py.j2", self._context(registry, containers))

    def _context(self, registry: Registry, containers: Sequence[_ContainerView]) -> Dict[str, object]:
        return {
            "root_class": self.root_class,
            "containers": containers,
            "member_count": len(registry),
        }

    def _render(self, template_name: str, context: Dict[str, object]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).rstrip() + "\n"

    def _build_views(self, registry: Registry) -> List[_ContainerView]:
        containers: List[_ContainerView] = []
        seen_containers: Dict[str, str] = {}
        for namespace in sorted(registry.by_namespace):
            container = _ContainerView(name=container_name(namespace), namespace=namespace)
            _claim(seen_containers, container.name, namespace, f"namespace {namespace!r}")
            seen_types: Dict[str, str] = {}
            by_type = registry.by_namespace[namespace].by_type
            for type_name in sorted(by_type):
                type_view = _TypeView(name=static_name(type_name), type_name=type_name)
                _claim(seen_types, type_view.name, type_name, f"type {namespace}.{type_name}")
                seen_members: Dict[str, str] = {}
                by_member = by_type[type_name].by_member
                for member in sorted(by_member):
                    stamp = by_member[member]
                    view = _MemberView(
                        name=static_name(member),
                        key=member,
                        digest=stamp.digest,
                        signature=stamp.signature,
                    )
                    _claim(seen_members, view.name, member, f"member {namespace}.{type_name}.{member}")
                    type_view.members.append(view)
                container.types.append(type_view)
            containers.append(container)
        return containers

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_TEMPLATES_DIR))
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["pyrepr"] = repr
        return env


def _claim(seen: Dict[str, str], name: str, key: str, label: str) -> None:
    if not name.isidentifier():
        raise EmissionError(f"{label} renders to {name!r}, which is not a valid identifier")
    previous = seen.get(name)
    if previous is not None and previous != key:
        raise EmissionError(f"{label} renders to {name!r}, already used by {previous!r}")
    seen[name] = key


def emit(registry: Registry, root_class: str = "HashStamps") -> Tuple[StaticArtifact, RuntimeArtifact]:
    """Render `registry` into its static and runtime artifacts."""
    return Emitter(root_class=root_class).emit(registry)


__all__ = [
    "EmissionError",
    "Emitter",
    "RuntimeArtifact",
    "StaticArtifact",
    "container_name",
    "emit",
    "static_name",
]
