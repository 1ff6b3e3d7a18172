"""Tests for hashstamp.resolver."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from hashstamp.models import UnitRecord
from hashstamp.resolver import UnresolvedCollisionError, identifier_safe, resolve


def _record(namespace: str, type_name: str, name: str, signature: str) -> UnitRecord:
    return UnitRecord(
        namespace=namespace,
        type_name=type_name,
        member_name=name,
        resolved_name=name,
        qualified_signature=signature,
        digest="0" * 64,
    )


@pytest.mark.parametrize(
    ("signature", "expected"),
    [
        ("TestMethod3(string)", "TestMethod3_string"),
        ("Process()", "Process"),
        ("Foo(int, string)", "Foo_int__string"),
        ("Load(System.IO.Stream)", "Load_System_IO_Stream"),
        ("Do_It(int)", "Do_It_int"),
        ("merge(list[int], *Any)", "merge_list_int____Any"),
    ],
)
def test_identifier_safe(signature: str, expected: str) -> None:
    assert identifier_safe(signature) == expected


def test_only_colliding_names_are_qualified() -> None:
    records = [
        _record("N", "T", "Process", "Process(int)"),
        _record("N", "T", "Process", "Process(string)"),
        _record("N", "T", "Stop", "Stop()"),
        _record("N", "U", "Process", "Process()"),
    ]

    resolved = {(r.type_name, r.resolved_name) for r in resolve(records)}

    assert resolved == {
        ("T", "Process_int"),
        ("T", "Process_string"),
        ("T", "Stop"),
        ("U", "Process"),
    }


def test_same_type_name_in_other_namespace_is_a_separate_group() -> None:
    records = [
        _record("A", "T", "Run", "Run()"),
        _record("B", "T", "Run", "Run(int)"),
    ]

    assert sorted(r.resolved_name for r in resolve(records)) == ["Run", "Run"]


def test_identical_signatures_are_reported() -> None:
    records = [
        _record("N", "T", "Process", "Process(int)"),
        _record("N", "T", "Process", "Process(int)"),
    ]

    with pytest.raises(UnresolvedCollisionError) as excinfo:
        resolve(records)

    error = excinfo.value
    assert error.namespace == "N"
    assert error.type_name == "T"
    assert error.signatures == ["Process(int)", "Process(int)"]


def test_qualified_name_clashing_with_simple_name_is_reported() -> None:
    records = [
        _record("N", "T", "Run", "Run(int)"),
        _record("N", "T", "Run", "Run(str)"),
        _record("N", "T", "Run_int", "Run_int()"),
    ]

    with pytest.raises(UnresolvedCollisionError, match="Run_int"):
        resolve(records)


def test_resolution_on_executor_matches_serial_resolution() -> None:
    records = [
        _record(f"N{i % 3}", f"T{i % 5}", "Work", f"Work({i})") for i in range(30)
    ]

    with ThreadPoolExecutor(max_workers=4) as executor:
        parallel = resolve(records, executor=executor)
    serial = resolve(records)

    assert sorted(parallel, key=lambda r: r.qualified_signature) == sorted(
        serial, key=lambda r: r.qualified_signature
    )
