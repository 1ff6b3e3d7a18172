"""Base classes for unit descriptor sources."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from ..models import UnitDescriptor


class DescriptorSource(ABC):
    """Contract for sources that report named code units found in a file."""

    name: str = ""

    @abstractmethod
    def supports(self, path: Path) -> bool:
        """Return True when this source can read units from `path`."""

    @abstractmethod
    def descriptors(self, path: Path, root: Path) -> Iterable[UnitDescriptor]:
        """Yield one descriptor per unit declared in `path`."""
