"""Clases base para fuentes de volcados de FRAM."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourcePaths:
    """Container for source directories."""

    root: Path


class DumpSource(ABC):
    """Abstract source of memory dumps."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a dump source.

        Args:
            paths: Source paths configuration.
        """
        self._paths = paths

    @abstractmethod
    def validate(self) -> None:
        """Validate that required folders/files exist.

        Raises:
            FileNotFoundError: If required files are missing.
        """

    @abstractmethod
    def load_dump(self, path: Path) -> bytes:
        """Read one dump file as raw bytes."""
