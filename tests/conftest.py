from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

import pytest


class SourceTree:
    """Utility for writing files into a throwaway source tree."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTree:
    """Provide a source tree rooted under the pytest tmp_path."""
    return SourceTree(tmp_path)
