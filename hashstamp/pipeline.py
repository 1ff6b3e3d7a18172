"""Pipeline orchestration for generate/check/list flows."""

from __future__ import annotations

import ast
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import HashStampConfig, load_config
from .emitter import Emitter, RuntimeArtifact, StaticArtifact
from .fingerprint import fingerprint_unit
from .logging import get_logger, log_run_summary
from .models import UnitDescriptor
from .registry import Registry, RegistryDiff, build, diff
from .resolver import resolve
from .scanner import SourceScanner
from .sources import DescriptorSource, discover_sources


@dataclass
class GenerationResult:
    """Everything one generation run produces."""

    registry: Registry
    static: StaticArtifact
    runtime: RuntimeArtifact
    module_source: str
    dropped: List[UnitDescriptor] = field(default_factory=list)


@dataclass
class GenerateOutcome:
    """Result of writing the generated module to disk."""

    path: Path
    result: GenerationResult
    written: bool
    dry_run: bool


class HashStampPipeline:
    """Coordinates descriptor collection, fingerprinting, resolution and emission."""

    def __init__(
        self,
        config: HashStampConfig | None = None,
        *,
        sources: Optional[Iterable[DescriptorSource]] = None,
        scanner: SourceScanner | None = None,
    ) -> None:
        self.config = config
        self._source_overrides = list(sources) if sources is not None else None
        self.scanner = scanner or SourceScanner()
        self.logger = get_logger("pipeline")

    def run(
        self, descriptors: Iterable[UnitDescriptor], config: HashStampConfig | None = None
    ) -> GenerationResult:
        """Turn descriptors into a registry and both of its artifacts."""
        config = config or self.config or HashStampConfig(root=Path.cwd())
        started = time.perf_counter()
        kept: List[UnitDescriptor] = []
        dropped: List[UnitDescriptor] = []
        for descriptor in descriptors:
            (kept if descriptor.has_symbols else dropped).append(descriptor)

        with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="hashstamp") as executor:
            records = list(executor.map(fingerprint_unit, kept))
            resolved = resolve(records, executor=executor)

        registry = build(resolved)
        emitter = Emitter(root_class=config.root_class, templates_dir=config.templates_dir)
        static, runtime = emitter.emit(registry)
        module_source = emitter.render_module(registry)
        log_run_summary(self.logger, registry, dropped, time.perf_counter() - started)
        return GenerationResult(
            registry=registry,
            static=static,
            runtime=runtime,
            module_source=module_source,
            dropped=dropped,
        )

    def collect(
        self, path: Path, config: HashStampConfig, output: Path | None = None
    ) -> List[UnitDescriptor]:
        """Scan `path` and gather descriptors from every supporting source."""
        root = Path(path).expanduser().resolve()
        sources = self._select_sources(config)
        output_path = (output or config.output_path).resolve()
        descriptors: List[UnitDescriptor] = []
        files = self.scanner.scan(root, config.exclude_paths)
        self.logger.debug("Scanner discovered %d files", len(files))
        for file_path in files:
            if file_path == output_path:
                continue
            for source in sources:
                if not source.supports(file_path):
                    continue
                try:
                    found = list(source.descriptors(file_path, root))
                except (OSError, UnicodeDecodeError, SyntaxError) as exc:
                    self.logger.warning("Skipping %s: %s", file_path.relative_to(root), exc)
                    continue
                descriptors.extend(found)
        return descriptors

    def generate(
        self, path: str | Path, *, output: Path | None = None, dry_run: bool = False
    ) -> GenerateOutcome:
        """Compute the registry for a tree and write the generated module."""
        root = Path(path).expanduser().resolve()
        self.logger.info("Starting generate run for %s", root)
        config = self._load_config(root)
        target = self._output_path(config, output)

        result = self.run(self.collect(root, config, target), config)

        if target.exists() and target.read_text(encoding="utf-8") == result.module_source:
            self.logger.info("Generated module identical to %s; skipping write", target)
            return GenerateOutcome(path=target, result=result, written=False, dry_run=dry_run)
        if dry_run:
            self.logger.info("Dry-run completed; %s not written", target)
            return GenerateOutcome(path=target, result=result, written=False, dry_run=True)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(result.module_source, encoding="utf-8")
        self.logger.info("Generated module written to %s", target)
        return GenerateOutcome(path=target, result=result, written=True, dry_run=False)

    def check(self, path: str | Path, *, output: Path | None = None) -> RegistryDiff:
        """Compare the current tree with the registry stored in the generated module."""
        root = Path(path).expanduser().resolve()
        config = self._load_config(root)
        target = self._output_path(config, output)
        previous = load_registry(target) if target.exists() else Registry({})
        current = self.run(self.collect(root, config, target), config).registry
        changes = diff(previous, current)
        if changes.is_empty:
            self.logger.info("%s is up to date", target)
        else:
            self.logger.info("%s is stale: %d differences", target, len(changes.lines()))
        return changes

    def registry_for(self, path: str | Path) -> Registry:
        root = Path(path).expanduser().resolve()
        config = self._load_config(root)
        return self.run(self.collect(root, config), config).registry

    def _load_config(self, root: Path) -> HashStampConfig:
        if self.config is not None:
            return self.config
        return load_config(root)

    @staticmethod
    def _output_path(config: HashStampConfig, output: Path | None) -> Path:
        if output is None:
            return config.output_path
        return output if output.is_absolute() else Path.cwd() / output

    def _select_sources(self, config: HashStampConfig) -> Sequence[DescriptorSource]:
        if self._source_overrides is not None:
            return self._source_overrides
        enabled = config.sources.enabled or None
        return discover_sources(
            enabled,
            ignore_docstrings=config.python.ignore_docstrings,
            default_namespace=config.default_namespace,
        )


def load_registry(module_path: Path) -> Registry:
    """Read the registry literal out of a generated module without executing it."""
    tree = ast.parse(module_path.read_text(encoding="utf-8"), filename=str(module_path))
    for node in tree.body:
        if (
            isinstance(node, ast.Assign)
            and len(node.targets) == 1
            and isinstance(node.targets[0], ast.Name)
            and node.targets[0].id == "REGISTRY"
            and isinstance(node.value, ast.Call)
            and node.value.args
        ):
            return Registry.from_mapping(ast.literal_eval(node.value.args[0]))
    raise ValueError(f"{module_path} does not contain a generated REGISTRY")


__all__ = ["GenerateOutcome", "GenerationResult", "HashStampPipeline", "load_registry"]
