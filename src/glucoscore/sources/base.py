"""Clases base para las fuentes de lecturas y eventos."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourcePaths:
    """Location of a source export (file or directory)."""

    root: Path


class DataSource(ABC):
    """Abstract input adapter feeding the analyzers."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a data source.

        Args:
            paths: Where the export lives.
        """
        self._paths = paths

    @abstractmethod
    def validate(self) -> None:
        """Check that the export exists.

        Raises:
            FileNotFoundError: If the export is missing.
        """
