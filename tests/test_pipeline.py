"""Tests for hashstamp.pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest

from hashstamp.config import HashStampConfig
from hashstamp.fingerprint import EMPTY_DIGEST, FingerprintError
from hashstamp.models import BodyContent, SourceLocation, UnitDescriptor
from hashstamp.pipeline import HashStampPipeline, load_registry
from hashstamp.resolver import UnresolvedCollisionError
from hashstamp.sources import PythonSource

_BENCHMARK_CLASS = """
class BenchmarkTestClass:
    def SimpleMethod(self) -> str:
        return "Hello, World!"

    def MethodWithLoops(self) -> str:
        result = ""
        for i in range(10):
            result += f"Iteration {i} "
        return result
"""


def _descriptor(
    namespace: str | None,
    type_name: str | None,
    name: str,
    signature: str | None = None,
    statements: tuple[str, ...] | None = ("return 1;",),
) -> UnitDescriptor:
    body = BodyContent.statements(statements, "c_sharp") if statements is not None else None
    return UnitDescriptor(
        namespace=namespace,
        type_name=type_name,
        member_name=name,
        qualified_signature=signature or f"{name}()",
        body=body,
        location=SourceLocation("Sample.cs", 1),
    )


def _execute(source: str) -> Dict[str, Any]:
    namespace: Dict[str, Any] = {}
    exec(compile(source, "<generated>", "exec"), namespace)
    return namespace


@pytest.fixture
def pipeline(tmp_path: Path) -> HashStampPipeline:
    return HashStampPipeline(HashStampConfig(root=tmp_path), sources=[PythonSource()])


def test_run_exposes_distinct_digests_in_both_forms(pipeline: HashStampPipeline) -> None:
    result = pipeline.run(
        [
            _descriptor("N", "T", "SimpleMethod", statements=('return "Hello, World!";',)),
            _descriptor("N", "T", "MethodWithLoops", statements=('var r = "";', "for (;;) { r += 1; }", "return r;")),
        ]
    )

    simple = result.registry.lookup("N", "T", "SimpleMethod").digest
    loops = result.registry.lookup("N", "T", "MethodWithLoops").digest
    assert simple != loops
    root = _execute(result.static.source)["HashStamps"]
    assert root.N.T.SimpleMethod == simple
    assert root.N.T.MethodWithLoops == loops
    module = _execute(result.module_source)
    assert module["REGISTRY"] == result.registry


def test_descriptors_without_symbols_are_dropped(pipeline: HashStampPipeline) -> None:
    orphan = _descriptor("N", None, "helper")
    result = pipeline.run([_descriptor("N", "T", "Run"), orphan, _descriptor(None, "T", "Other")])

    assert len(result.registry) == 1
    assert result.dropped[0] is orphan
    assert len(result.dropped) == 2


def test_bodiless_members_carry_the_empty_digest(pipeline: HashStampPipeline) -> None:
    result = pipeline.run([_descriptor("N", "T", "Reset", statements=None)])

    assert result.registry.lookup("N", "T", "Reset").digest == EMPTY_DIGEST


def test_overloads_are_qualified_only_within_their_type(pipeline: HashStampPipeline) -> None:
    result = pipeline.run(
        [
            _descriptor("N", "T", "Process", "Process(int)"),
            _descriptor("N", "T", "Process", "Process(string)"),
            _descriptor("N", "U", "Process", "Process(int)"),
        ]
    )

    assert set(result.registry.by_namespace["N"].by_type["T"].by_member) == {"Process_int", "Process_string"}
    assert set(result.registry.by_namespace["N"].by_type["U"].by_member) == {"Process"}
    root = _execute(result.static.source)["HashStamps"]
    assert root.N.T.Process_int == result.registry.lookup("N", "T", "Process_int").digest


def test_unresolvable_collision_fails_the_run(pipeline: HashStampPipeline) -> None:
    with pytest.raises(UnresolvedCollisionError):
        pipeline.run(
            [
                _descriptor("N", "T", "Process", "Process(int)"),
                _descriptor("N", "T", "Process", "Process(int)"),
            ]
        )


def test_unencodable_body_fails_the_run(pipeline: HashStampPipeline) -> None:
    with pytest.raises(FingerprintError, match="N.T.Run"):
        pipeline.run([_descriptor("N", "T", "Run", statements=("return '\ud800';",))])


def test_single_worker_matches_default_pool(tmp_path: Path) -> None:
    descriptors = [_descriptor(f"N{i % 4}", f"T{i % 3}", f"M{i}") for i in range(40)]

    pooled = HashStampPipeline(HashStampConfig(root=tmp_path)).run(descriptors)
    serial = HashStampPipeline(HashStampConfig(root=tmp_path, workers=1)).run(descriptors)

    assert pooled.registry == serial.registry
    assert pooled.module_source == serial.module_source


def test_generate_writes_module_and_skips_identical_rewrites(source_tree) -> None:
    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS})
    pipeline = HashStampPipeline()

    first = pipeline.generate(source_tree.root)
    second = pipeline.generate(source_tree.root)

    target = (source_tree.root / "hashstamps.py").resolve()
    assert first.written is True
    assert first.path == target
    assert second.written is False
    module = _execute(target.read_text(encoding="utf-8"))
    stamps = module["HashStamps"].bench_test_data.BenchmarkTestClass
    assert stamps.SimpleMethod != stamps.MethodWithLoops
    assert module["REGISTRY"].lookup("bench.test_data", "BenchmarkTestClass", "SimpleMethod").digest == stamps.SimpleMethod
    assert load_registry(target) == first.result.registry


def test_generate_dry_run_does_not_write(source_tree) -> None:
    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS})

    outcome = HashStampPipeline().generate(source_tree.root, dry_run=True)

    assert outcome.dry_run is True
    assert outcome.written is False
    assert not (source_tree.root / "hashstamps.py").exists()
    assert len(outcome.result.registry) == 2


def test_generate_honours_config_file(source_tree) -> None:
    source_tree.write(
        {
            ".hashstamp.yml": """
            output: generated/stamps.py
            root_class: Fingerprints
            exclude_paths:
              - legacy/
            """,
            "bench/test_data.py": _BENCHMARK_CLASS,
            "legacy/old.py": "class Old:\n    def run(self):\n        return 0\n",
        }
    )

    outcome = HashStampPipeline().generate(source_tree.root)

    assert outcome.path == (source_tree.root / "generated" / "stamps.py").resolve()
    module = _execute(outcome.path.read_text(encoding="utf-8"))
    assert "Fingerprints" in module
    assert "legacy.old" not in module["REGISTRY"].by_namespace


def test_unparseable_files_are_skipped(source_tree) -> None:
    source_tree.write(
        {
            "bench/test_data.py": _BENCHMARK_CLASS,
            "bench/broken.py": "class Broken:\n    def run(self)\n        return 0\n",
        }
    )

    registry = HashStampPipeline().registry_for(source_tree.root)

    assert set(registry.by_namespace) == {"bench.test_data"}


def test_check_reports_changed_methods(source_tree) -> None:
    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS})
    pipeline = HashStampPipeline()
    pipeline.generate(source_tree.root)

    assert pipeline.check(source_tree.root).is_empty

    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS.replace("Hello, World!", "Hello!")})
    changes = pipeline.check(source_tree.root)

    assert changes.changed == [("bench.test_data", "BenchmarkTestClass", "SimpleMethod")]
    assert changes.added == []
    assert changes.removed == []


def test_check_ignores_formatting_changes(source_tree) -> None:
    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS})
    pipeline = HashStampPipeline()
    pipeline.generate(source_tree.root)

    reformatted = _BENCHMARK_CLASS.replace('result = ""', "result = ''  # start empty")
    source_tree.write({"bench/test_data.py": reformatted})

    assert pipeline.check(source_tree.root).is_empty


def test_check_without_generated_module_reports_everything_added(source_tree) -> None:
    source_tree.write({"bench/test_data.py": _BENCHMARK_CLASS})

    changes = HashStampPipeline().check(source_tree.root)

    assert len(changes.added) == 2


def test_load_registry_rejects_foreign_modules(tmp_path: Path) -> None:
    target = tmp_path / "other.py"
    target.write_text("VALUE = 1\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_registry(target)
