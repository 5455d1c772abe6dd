# SPDX-License-Identifier: MIT
"""Project container for mheader.

A Project groups the targets that end up in one header file, together
with the directories they live in, the build scripts that defined them
and the active build configuration.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from mheader.core.errors import MultipleConfigurationsError
from mheader.core.outputs import is_absolute, normalize_path
from mheader.core.target import Target, TargetType

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class Project:
    """Top-level container for one generated header.

    Example:
        project = Project("myproject", source_dir="/src", binary_dir="/build")
        lib = project.add_target(Target("mylib", target_type="static_library"))
        app = project.add_target(Target("app"))
        app.link(lib)

    Attributes:
        name: Project name.
        source_dir: Project source root.
        binary_dir: Project binary directory.
        list_files: Build scripts consulted while defining the project.
        configurations: Active build configurations.
    """

    __slots__ = (
        "name",
        "source_dir",
        "binary_dir",
        "list_files",
        "configurations",
        "_targets",
    )

    def __init__(
        self,
        name: str,
        *,
        source_dir: str | Path | None = None,
        binary_dir: str | Path = "build",
        list_files: Iterable[str | Path] = (),
        configurations: Iterable[str] = ("Debug",),
    ) -> None:
        """Create a project.

        Args:
            name: Project name.
            source_dir: Project source root (default: current dir).
            binary_dir: Project binary directory (default: "build").
            list_files: Build scripts consulted for this project.
            configurations: Active build configurations.
        """
        self.name = name
        self.source_dir = normalize_path(
            Path(source_dir).absolute() if source_dir else Path.cwd()
        )
        self.binary_dir = normalize_path(Path(binary_dir).absolute())
        self.list_files: list[str] = [str(f) for f in list_files]
        self.configurations: list[str] = list(configurations)
        self._targets: dict[str, Target] = {}

    def add_target(self, target: Target) -> Target:
        """Register a target with the project.

        Targets without their own directories inherit the project's.

        Args:
            target: Target to register.

        Returns:
            The target, for chaining.

        Raises:
            ValueError: If a target with the same name already exists.
        """
        if target.name in self._targets:
            raise ValueError(f"Target '{target.name}' already exists")
        if target.source_dir is None:
            target.source_dir = self.source_dir
        if target.binary_dir is None:
            target.binary_dir = self.binary_dir
        self._targets[target.name] = target
        return target

    def get_target(self, name: str) -> Target | None:
        """Get a target by name, or None if not found."""
        return self._targets.get(name)

    @property
    def targets(self) -> list[Target]:
        """Get all registered targets, in definition order."""
        return list(self._targets.values())

    @property
    def config_name(self) -> str:
        """The single active configuration.

        Raises:
            MultipleConfigurationsError: If more than one configuration
                is active.
        """
        if len(self.configurations) > 1:
            raise MultipleConfigurationsError(self.configurations, self.name)
        if not self.configurations:
            return "Debug"
        return self.configurations[0]

    def declared_outputs(self) -> set[str]:
        """All outputs and byproducts declared by custom steps in the project."""
        outputs: set[str] = set()
        for target in self._targets.values():
            for source in target.sources:
                command = source.custom_command
                if command is None:
                    continue
                outputs.update(normalize_path(p) for p in command.outputs)
                outputs.update(normalize_path(p) for p in command.byproducts)
        return outputs

    def resolve_dependency(self, name: str, target: Target) -> str | None:
        """Resolve a custom step input to a file path.

        Names of targets that are not files resolve to nothing. A relative
        path is taken relative to the target's source directory, or to its
        binary directory when a custom step produces it there. A path
        resolves only if it exists or is produced by a custom step.

        Args:
            name: The declared input.
            target: The target owning the step.

        Returns:
            The resolved absolute path, or None.
        """
        dependency_target = self._targets.get(name)
        if dependency_target is not None:
            logger.debug("Input %s of %s is a target, skipping", name, target.name)
            return None

        declared = self.declared_outputs()
        if is_absolute(name):
            path = normalize_path(name)
        else:
            base = target.source_dir or self.source_dir
            path = normalize_path(f"{base}/{name}")
            if not os.path.exists(path) and path not in declared:
                binary_dir = target.binary_dir or self.binary_dir
                path = normalize_path(f"{binary_dir}/{name}")

        if os.path.exists(path) or path in declared:
            return path
        return None

    def build_files(self) -> list[str]:
        """Sorted, unique build scripts consulted for this project."""
        return sorted(set(self.list_files))

    def emitted_targets(self) -> list[Target]:
        """Targets that get their own entry in the header."""
        return [t for t in self._targets.values() if is_emitted(t)]

    def __repr__(self) -> str:
        return f"Project({self.name!r}, targets={len(self._targets)})"


# Utility targets created by the testing dashboard; only the umbrella
# target of each family is kept.
_DASHBOARD_FAMILIES = ("Nightly", "Continuous", "Experimental")


def is_dashboard_subtarget(name: str) -> bool:
    """Check for secondary dashboard targets such as NightlyStart."""
    return any(
        name.startswith(family) and name != family for family in _DASHBOARD_FAMILIES
    )


def is_emitted(target: Target) -> bool:
    """Whether a target gets its own %Target entry."""
    if target.target_type in (
        TargetType.GLOBAL,
        TargetType.INTERFACE,
        TargetType.OBJECT,
    ):
        return False
    if target.target_type == TargetType.UTILITY:
        return not is_dashboard_subtarget(target.name)
    return True


def is_collected(target: Target) -> bool:
    """Whether a target's custom steps are scanned for outputs."""
    if target.target_type in (TargetType.GLOBAL, TargetType.INTERFACE):
        return False
    return not (
        target.target_type == TargetType.UTILITY
        and is_dashboard_subtarget(target.name)
    )
