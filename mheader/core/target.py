# SPDX-License-Identifier: MIT
"""Targets, source files and custom build steps.

These classes are the interface to the build graph the header is
generated from. Whatever discovers the graph (a build script evaluator,
a JSON loader, a test) fills them in; the generator only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable


class TargetType(str, Enum):
    """Kinds of build targets."""

    PROGRAM = "program"
    STATIC_LIBRARY = "static_library"
    SHARED_LIBRARY = "shared_library"
    MODULE = "module"
    OBJECT = "object"  # Object files only, inlined into consumers
    UTILITY = "utility"  # Custom steps only
    INTERFACE = "interface"  # Usage requirements only
    GLOBAL = "global"  # Built-in pseudo targets (install, test, ...)


# Targets whose outputs are archives of object files.
STATIC_LIKE_TYPES = frozenset([TargetType.STATIC_LIBRARY, TargetType.OBJECT])


@dataclass
class CustomCommand:
    """A build step attached to a source file.

    Attributes:
        command_lines: Commands to run, each a list of arguments.
        outputs: Files produced by the step.
        byproducts: Files produced as a side effect.
        depends: Declared inputs (paths or target names).
        working_dir: Directory to run in; the target's binary directory
            if not set.
        depfile: Dependency file written by the step, if any.
        symbolic: Outputs that are not real files.
    """

    command_lines: list[list[str]] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    byproducts: list[str] = field(default_factory=list)
    depends: list[str] = field(default_factory=list)
    working_dir: str | None = None
    depfile: str | None = None
    symbolic: set[str] = field(default_factory=set)


@dataclass
class SourceFile:
    """A source file of a target.

    Attributes:
        path: Absolute path of the file.
        language: Compile language (e.g. "C", "CXX"), empty if not compiled.
        custom_command: Build step that produces or processes the file.
        generated: The file is produced during the build.
        symbolic: The file does not exist as a real file.
        header_only: The file is a header and is not compiled.
        object_library: Name of the object library this object file comes from.
        properties: Source file properties (COMPILE_DEFINITIONS,
            COMPILE_DEFINITIONS_<CONFIG>, COMPILE_FLAGS, ...).
    """

    path: str
    language: str = ""
    custom_command: CustomCommand | None = None
    generated: bool = False
    symbolic: bool = False
    header_only: bool = False
    object_library: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def get_property(self, name: str) -> Any:
        """Get a property value, or None if it is not set."""
        return self.properties.get(name)


@dataclass
class CompileSettings:
    """Per-language compile settings of a target.

    Attributes:
        include_dirs: Include directories, in search order.
        defines: Preprocessor defines.
        flags: Compile flags as one string.
    """

    include_dirs: list[str] = field(default_factory=list)
    defines: list[str] = field(default_factory=list)
    flags: str = ""


@dataclass(frozen=True)
class TargetDependency:
    """A direct dependency edge.

    Attributes:
        target: The target depended on.
        link: Whether the dependency is linked, or only ordered before.
    """

    target: Target
    link: bool = True


class Target:
    """A named build target.

    Example:
        lib = Target("mylib", target_type=TargetType.STATIC_LIBRARY)
        lib.add_sources(["/src/lib.c"], language="C")
        lib.settings("C").include_dirs.append("/src/include")

        app = Target("app", target_type=TargetType.PROGRAM)
        app.link(lib)

    Attributes:
        name: Target name.
        target_type: Kind of target.
        sources: Source files, in enumeration order.
        dependencies: Direct dependencies.
        compile_settings: Compile settings per language.
        source_dir: Directory the target was defined in.
        binary_dir: Directory build outputs of the target go to.
        rule_launcher: Command prefixed to custom build steps.
    """

    __slots__ = (
        "name",
        "target_type",
        "sources",
        "dependencies",
        "compile_settings",
        "source_dir",
        "binary_dir",
        "rule_launcher",
    )

    def __init__(
        self,
        name: str,
        *,
        target_type: TargetType | str = TargetType.PROGRAM,
        source_dir: str | Path | None = None,
        binary_dir: str | Path | None = None,
        rule_launcher: str | None = None,
    ) -> None:
        """Create a target.

        Args:
            name: Target name (e.g., "mylib", "myapp").
            target_type: Kind of target.
            source_dir: Directory the target was defined in (default:
                the project source directory).
            binary_dir: Directory for build outputs (default: the project
                binary directory).
            rule_launcher: Command prefixed to custom build steps.
        """
        self.name = name
        self.target_type = TargetType(target_type)
        self.sources: list[SourceFile] = []
        self.dependencies: list[TargetDependency] = []
        self.compile_settings: dict[str, CompileSettings] = {}
        self.source_dir = str(source_dir) if source_dir is not None else None
        self.binary_dir = str(binary_dir) if binary_dir is not None else None
        self.rule_launcher = rule_launcher

    def link(self, *targets: Target) -> Target:
        """Add linked dependencies (fluent API)."""
        for target in targets:
            self._add_dependency(TargetDependency(target, link=True))
        return self

    def depends_on(self, *targets: Target) -> Target:
        """Add order-only dependencies that are not linked (fluent API)."""
        for target in targets:
            self._add_dependency(TargetDependency(target, link=False))
        return self

    def _add_dependency(self, dependency: TargetDependency) -> None:
        for existing in self.dependencies:
            if existing.target == dependency.target:
                return
        self.dependencies.append(dependency)

    def add_source(self, source: SourceFile | str | Path, **kwargs: Any) -> SourceFile:
        """Add a source file.

        Args:
            source: A SourceFile, or a path to build one from.
            **kwargs: SourceFile fields when a path is given.

        Returns:
            The added SourceFile.
        """
        if not isinstance(source, SourceFile):
            source = SourceFile(str(source), **kwargs)
        self.sources.append(source)
        return source

    def add_sources(
        self,
        sources: Iterable[str | Path],
        *,
        base: str | Path | None = None,
        **kwargs: Any,
    ) -> Target:
        """Add multiple source files (fluent API).

        Args:
            sources: Source paths.
            base: Optional base directory for relative paths.
            **kwargs: SourceFile fields applied to every file.

        Example:
            target.add_sources(["main.c", "util.c"], base="/src", language="C")
        """
        base_path = Path(base) if base else None
        for source in sources:
            path = Path(source)
            if base_path and not path.is_absolute():
                path = base_path / path
            self.add_source(path.as_posix(), **kwargs)
        return self

    def add_custom_command(
        self,
        path: str | Path,
        command_lines: list[list[str]],
        **kwargs: Any,
    ) -> SourceFile:
        """Attach a custom build step to a (new) source file.

        Args:
            path: The file carrying the step, usually its main output.
            command_lines: Commands to run.
            **kwargs: CustomCommand fields.

        Returns:
            The SourceFile carrying the step.
        """
        command = CustomCommand(command_lines=command_lines, **kwargs)
        return self.add_source(Path(path).as_posix(), custom_command=command)

    def settings(self, language: str) -> CompileSettings:
        """Get the compile settings for a language, creating them if needed."""
        if language not in self.compile_settings:
            self.compile_settings[language] = CompileSettings()
        return self.compile_settings[language]

    def languages(self) -> list[str]:
        """All languages used by this target, sorted."""
        languages = {source.language for source in self.sources if source.language}
        languages.update(self.compile_settings)
        return sorted(languages)

    @property
    def is_static_like(self) -> bool:
        """Whether the target produces an archive of object files."""
        return self.target_type in STATIC_LIKE_TYPES

    def __repr__(self) -> str:
        deps = ", ".join(d.target.name for d in self.dependencies)
        return f"Target({self.name!r}, {self.target_type.value}, deps=[{deps}])"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Target):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)
