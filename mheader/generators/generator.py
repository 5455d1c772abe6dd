# SPDX-License-Identifier: MIT
"""Generator protocol for build description generation.

Generators take a Project and write files describing it for another
build tool (e.g., a Malterlib header).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mheader.core.project import Project


@runtime_checkable
class Generator(Protocol):
    """Protocol for build description generators.

    A Generator takes a Project and writes files to the output
    directory.
    """

    @property
    def name(self) -> str:
        """Generator name (e.g., 'malterlib')."""
        ...

    def generate(self, project: Project, output_dir: Path | None = None) -> Path:
        """Generate files for a project.

        Args:
            project: The project to generate for.
            output_dir: Directory to write output files to (default: the
                project binary directory).

        Returns:
            Path of the main generated file.
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality."""

    def __init__(self, name: str) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
        """
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def generate(self, project: Project, output_dir: Path | None = None) -> Path:
        """Generate files. Subclasses must implement."""
        raise NotImplementedError

    @staticmethod
    def write_list(path: Path, lines: list[str]) -> None:
        """Write one entry per line."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="\n") as f:
            for line in lines:
                f.write(line)
                f.write("\n")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
