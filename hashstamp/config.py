"""Configuration loading for hashstamp (.hashstamp.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".hashstamp.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class SourceConfig:
    """Descriptor source enablement."""

    enabled: List[str] = field(default_factory=list)


@dataclass
class PythonConfig:
    """Settings for the Python descriptor source."""

    ignore_docstrings: bool = True


@dataclass
class HashStampConfig:
    """Represents the settings defined in .hashstamp.yml."""

    root: Path
    output: Path = Path("hashstamps.py")
    root_class: str = "HashStamps"
    default_namespace: str = "Global"
    workers: Optional[int] = None
    exclude_paths: List[str] = field(default_factory=list)
    sources: SourceConfig = field(default_factory=SourceConfig)
    python: PythonConfig = field(default_factory=PythonConfig)
    templates_dir: Optional[Path] = None

    @property
    def output_path(self) -> Path:
        return self.output if self.output.is_absolute() else self.root / self.output


def load_config(config_path: Path) -> HashStampConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return HashStampConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = HashStampConfig(root=root)

    output = _as_str(data.get("output"))
    if output:
        config.output = Path(output)

    root_class = _as_str(data.get("root_class"))
    if root_class:
        if not root_class.isidentifier():
            raise ConfigError(f"root_class must be a valid identifier, got {root_class!r}")
        config.root_class = root_class

    default_namespace = _as_str(data.get("default_namespace"))
    if default_namespace:
        config.default_namespace = default_namespace

    if "workers" in data:
        workers = _as_int(data.get("workers"))
        if workers is None or workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    source_data = _as_dict(data.get("sources"))
    if source_data:
        config.sources.enabled = _as_str_list(source_data.get("enabled"))

    python_data = _as_dict(data.get("python"))
    if python_data:
        ignore_docstrings = _as_bool(python_data.get("ignore_docstrings"))
        if ignore_docstrings is not None:
            config.python.ignore_docstrings = ignore_docstrings

    templates_dir = _as_str(data.get("templates_dir"))
    if templates_dir:
        config.templates_dir = root / templates_dir

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
