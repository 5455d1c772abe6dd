# SPDX-License-Identifier: MIT
"""Malterlib header generator.

Generates a <project>.MHeader file describing the targets of a project
for the Malterlib build system, next to two list files:
<project>.MHeader.dependencies (build scripts consulted) and
<project>.MHeader.outputs (files produced by custom build steps).

Each project is processed in two passes. The collection pass registers
every file produced by a custom build step in the project. The emission
pass then builds the header tree, and can recognize references to any of
those outputs, whichever target produces them.

Example output:
    %Target "Lib_mylib"
    {
    	Compile
    	{
    		!!Compile.Type "C"
    		SearchPath "@('/src/include'->MakeAbsolute());@(Compile.SearchPath)"
    		PreprocessorDefines "MYLIB;@(Compile.PreprocessorDefines)"
    	}
    	Property.MalterlibTargetNameType "Normal"
    	Target.Group "External/myproject"
    	Target.Type "StaticLibrary"
    	Target.BaseName "mylib"
    	%Group "src"
    	{
    		%File "/src/lib.c"
    		{
    			Compile.Type "C"
    		}
    	}
    }
"""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from mheader.configure.config import GeneratorConfig
from mheader.core.commands import CommandLineTranscriber
from mheader.core.errors import GenerateError, UnknownLanguageError
from mheader.core.flags import parse_compile_flags, split_definitions, unique
from mheader.core.outputs import OutputPathTracker, is_absolute, normalize_path
from mheader.core.project import is_collected
from mheader.core.registry import (
    COMPILE_KEY,
    DEPENDENCY_KEY,
    FILE_KEY,
    GROUP_KEY,
    TARGET_KEY,
    Registry,
)
from mheader.core.target import TargetType
from mheader.core.values import (
    DynamicPath,
    Value,
    double_introducers,
    looks_like_expression,
    render,
)
from mheader.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mheader.core.project import Project
    from mheader.core.target import SourceFile, Target

logger = logging.getLogger(__name__)

# Prefix of byproducts that denote a directory created by a step.
DIRECTORY_MARKER = "/DIR:"

# Self references that append to settings inherited by the build tool.
SEARCH_PATH_REFERENCE = "@(Compile.SearchPath)"
DEFINES_REFERENCE = "@(Compile.PreprocessorDefines)"

TRACKED_OUTPUTS_FILE = "Malterlib.TrackedOutputs"
PROTECTED_FILES_FILE = "Malterlib.ProtectedFiles"

# Map target types to name prefixes and Malterlib target types
TARGET_NAME_PREFIX = {
    TargetType.PROGRAM: "Exe_",
    TargetType.STATIC_LIBRARY: "Lib_",
    TargetType.OBJECT: "Lib_",
    TargetType.SHARED_LIBRARY: "Dll_",
    TargetType.MODULE: "Dll_",
    TargetType.UTILITY: "Tool_",
}

TARGET_TYPE_MAP = {
    TargetType.PROGRAM: "ConsoleExecutable",
    TargetType.STATIC_LIBRARY: "StaticLibrary",
    TargetType.OBJECT: "StaticLibrary",
    TargetType.SHARED_LIBRARY: "SharedDynamicLibrary",
    TargetType.MODULE: "DynamicLibrary",
    TargetType.UTILITY: "Tool",
}


def target_name(target: Target) -> str:
    """Malterlib name of a target (e.g. Exe_app, Lib_mylib)."""
    prefix = TARGET_NAME_PREFIX.get(target.target_type)
    if prefix is None:
        raise GenerateError(
            f"target type {target.target_type.value} has no Malterlib name", target.name
        )
    return prefix + target.name


def split_segments(path: str) -> list[str]:
    """Split a path into directory segments.

    Slashes inside an @(...) expression do not split.

    Examples:
        >>> split_segments("/a/b")
        ['a', 'b']
        >>> split_segments("@('/out'->MakeAbsolute())/gen")
        ["@('/out'->MakeAbsolute())", 'gen']
    """
    segments: list[str] = []
    current: list[str] = []
    depth = 0
    previous = ""
    for char in path:
        if char == "(" and (depth or previous == "@"):
            depth += 1
        elif char == ")" and depth:
            depth -= 1
        previous = char
        if char == "/" and depth == 0:
            if current:
                segments.append("".join(current))
                current = []
            continue
        current.append(char)
    if current:
        segments.append("".join(current))
    return segments


@dataclass
class CompileTypeInfo:
    """Compile settings aggregated per Malterlib compile type.

    Attributes:
        include_dirs: Absolute include directories, in search order.
        defines: Preprocessor defines.
        standard: Language standard (e.g. "c11"), if any.
    """

    include_dirs: list[str] = field(default_factory=list)
    defines: set[str] = field(default_factory=set)
    standard: str | None = None


class MalterlibGenerator(BaseGenerator):
    """Generator that produces Malterlib header files.

    Example:
        generator = MalterlibGenerator(GeneratorConfig.from_environ())
        generator.generate_all(projects, Path("build"))
        # Creates build/<project>.MHeader for each project

    Attributes:
        config: Generator configuration.
        tracker: Outputs of custom build steps, per project.
        protected_files: Placeholder files created for missing sources.
    """

    def __init__(self, config: GeneratorConfig | None = None) -> None:
        super().__init__("malterlib")
        self.config = config or GeneratorConfig()
        self.tracker = OutputPathTracker(self.config.transient_root)
        self.protected_files: set[str] = set()

    # Files

    def generate(self, project: Project, output_dir: Path | None = None) -> Path:
        """Generate the header and list files for one project.

        Args:
            project: Project to generate for.
            output_dir: Directory to write to (default: project binary dir).

        Returns:
            Path of the generated header.
        """
        output_dir = Path(output_dir) if output_dir else Path(project.binary_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        registry = self.build_registry(project)

        header_path = output_dir / f"{project.name}{self.config.header_suffix}"
        with open(header_path, "w", newline="\n") as f:
            registry.write(f)
        logger.info("Wrote %s", header_path)

        self.write_list(
            header_path.with_name(header_path.name + ".dependencies"),
            project.build_files(),
        )
        self.write_list(
            header_path.with_name(header_path.name + ".outputs"),
            self.tracker.outputs(project.name),
        )
        return header_path

    def generate_all(
        self, projects: list[Project], output_dir: Path | None = None
    ) -> list[Path]:
        """Generate headers for several projects, then the combined lists.

        Each project is collected and emitted completely before the next
        one starts.

        Args:
            projects: Projects to generate for.
            output_dir: Directory for all files (default: each project's
                binary dir, combined lists in the first one's).

        Returns:
            Paths of the generated headers.
        """
        headers = [self.generate(project, output_dir) for project in projects]
        if output_dir is None and projects:
            output_dir = Path(projects[0].binary_dir)
        if output_dir is not None:
            self.write_tracked_lists(Path(output_dir))
        return headers

    def write_tracked_lists(self, output_dir: Path) -> None:
        """Write the outputs and placeholder files of all projects so far."""
        self.write_list(output_dir / TRACKED_OUTPUTS_FILE, self.tracker.all_outputs())
        self.write_list(output_dir / PROTECTED_FILES_FILE, sorted(self.protected_files))

    # Tree

    def build_registry(self, project: Project) -> Registry:
        """Build the header tree for a project.

        Raises:
            GenerateError: On unsupported configurations, unknown languages
                or unsupported custom steps.
        """
        config_name = project.config_name
        self.collect_outputs(project)

        root = Registry()
        for target in project.emitted_targets():
            self._append_target(root, project, target, config_name)
        return root

    def collect_outputs(self, project: Project) -> None:
        """Register the outputs of every custom step in the project."""
        if not self.config.transient_root:
            self.tracker.set_transient_root(project.name, project.binary_dir)

        for target in project.targets:
            if not is_collected(target):
                continue
            for source in target.sources:
                command = source.custom_command
                if command is None:
                    continue
                symbolic = {normalize_path(p) for p in command.symbolic}
                if source.symbolic:
                    symbolic.add(normalize_path(source.path))

                for path in [*command.outputs, *command.byproducts]:
                    if path.startswith(DIRECTORY_MARKER):
                        self.tracker.register_directory(
                            project.name, path[len(DIRECTORY_MARKER) :]
                        )
                    elif normalize_path(path) not in symbolic:
                        self.tracker.register_output(project.name, path)
                if command.depfile:
                    self.tracker.register_output(project.name, command.depfile)

        logger.debug(
            "Collected %d outputs for %s",
            len(self.tracker.outputs(project.name)),
            project.name,
        )

    def _append_target(
        self, root: Registry, project: Project, target: Target, config_name: str
    ) -> None:
        target_node = root.add_child(TARGET_KEY, target_name(target))
        target_node.add_child("Property.MalterlibTargetNameType", "Normal")
        target_node.add_child("Target.Group", f"External/{project.name}")
        target_node.add_child("Target.Type", TARGET_TYPE_MAP[target.target_type])
        target_node.add_child("Target.BaseName", target.name)

        compile_info: dict[str, CompileTypeInfo] = {}
        self._add_compile_info(compile_info, target)
        self._add_files(target_node, project, target, config_name)

        inlined: set[str] = set()
        for dependency in sorted(target.dependencies, key=lambda d: d.target.name):
            dep = dependency.target
            if dep.target_type in (TargetType.INTERFACE, TargetType.GLOBAL):
                continue
            if dep.target_type == TargetType.OBJECT:
                self._inline_object_library(
                    target_node, compile_info, project, dep, config_name, inlined
                )
                continue

            dep_node = target_node.add_child(DEPENDENCY_KEY, target_name(dep))
            if not dependency.link:
                dep_node.add_child("Dependency.Link", "false")
            elif target.is_static_like and dep.is_static_like:
                dep_node.add_child("Dependency.Indirect", "true")

        for compile_type in sorted(compile_info):
            self._append_compile_block(
                target_node, project, compile_type, compile_info[compile_type]
            )

        target_node.prune_lone_children()

    def _inline_object_library(
        self,
        target_node: Registry,
        compile_info: dict[str, CompileTypeInfo],
        project: Project,
        library: Target,
        config_name: str,
        inlined: set[str],
    ) -> None:
        """Add the sources and settings of an object library to a target."""
        if library.name in inlined:
            return
        inlined.add(library.name)
        logger.debug("Inlining object library %s", library.name)

        self._add_files(target_node, project, library, config_name)
        self._add_compile_info(compile_info, library)
        for dependency in sorted(library.dependencies, key=lambda d: d.target.name):
            if dependency.target.target_type == TargetType.OBJECT:
                self._inline_object_library(
                    target_node,
                    compile_info,
                    project,
                    dependency.target,
                    config_name,
                    inlined,
                )

    # Compile settings

    def compile_type(self, language: str, location: str | None = None) -> str:
        """Malterlib compile type for a language, or "" for no language.

        Raises:
            UnknownLanguageError: If the language has no mapping.
        """
        if not language:
            return ""
        compile_type = self.config.languages.get(language)
        if compile_type is None:
            raise UnknownLanguageError(language, location)
        return compile_type

    def _add_compile_info(
        self, compile_info: dict[str, CompileTypeInfo], target: Target
    ) -> None:
        base = target.source_dir or "/"
        for language in target.languages():
            compile_type = self.compile_type(language, target.name)
            info = compile_info.setdefault(compile_type, CompileTypeInfo())
            settings = target.compile_settings.get(language)
            if settings is None:
                continue

            parsed = parse_compile_flags(settings.flags)
            for include_dir in [*settings.include_dirs, *parsed.include_dirs]:
                info.include_dirs.append(_absolute(include_dir, base))
            info.defines.update(split_definitions(settings.defines))
            info.defines.update(parsed.defines)
            if parsed.standard:
                info.standard = parsed.standard

    def _append_compile_block(
        self,
        target_node: Registry,
        project: Project,
        compile_type: str,
        info: CompileTypeInfo,
    ) -> None:
        search_paths = [
            DynamicPath(path).render() for path in unique(info.include_dirs)
        ]
        search_paths.append(SEARCH_PATH_REFERENCE)

        block = target_node.add_child(COMPILE_KEY, "", push_front=True)
        block.add_child("!!Compile.Type", compile_type)
        block.add_child("SearchPath", ";".join(search_paths))
        block.add_child(
            "PreprocessorDefines", self._defines_value(project, info.defines)
        )
        if info.standard and compile_type == "C":
            standard = info.standard.upper()
            block.add_child("CLanguage", standard)
            target_node.add_child("Target.CLanguage", standard, push_front=True)

    def _defines_value(self, project: Project, defines: Iterable[str]) -> str:
        values = [
            self.tracker.rewrite_embedded(project.name, double_introducers(define))
            for define in sorted(defines)
        ]
        values.append(DEFINES_REFERENCE)
        return ";".join(values)

    # Source files

    def _add_files(
        self, target_node: Registry, project: Project, target: Target, config_name: str
    ) -> None:
        for source in target.sources:
            if source.object_library:
                continue
            location = f"{target.name}: {source.path}"
            compile_type = self.compile_type(source.language, location)

            if source.custom_command is not None:
                self._add_custom_command_file(
                    target_node, project, target, source, compile_type, location
                )
            elif source.generated:
                file_node = self.add_file_in_group(target_node, project, source.path)
                file_node.add_child("Compile.AllowNonExisting", "true")
                if compile_type:
                    file_node.add_child("Compile.Type", compile_type)
            else:
                file_node = self.add_file_in_group(target_node, project, source.path)
                file_node.add_child("Compile.Type", compile_type or "None")
                if source.header_only:
                    continue
                defines = self._source_defines(source, config_name)
                if defines:
                    file_node.add_child(
                        "Compile.PreprocessorDefines",
                        self._defines_value(project, defines),
                    )

    def _source_defines(self, source: SourceFile, config_name: str) -> set[str]:
        defines = set(split_definitions(source.get_property("COMPILE_DEFINITIONS")))
        defines.update(
            split_definitions(
                source.get_property(f"COMPILE_DEFINITIONS_{config_name.upper()}")
            )
        )
        flags = source.get_property("COMPILE_FLAGS")
        if flags:
            if not isinstance(flags, str):
                flags = " ".join(flags)
            defines.update(parse_compile_flags(flags).defines)
        return defines

    def _add_custom_command_file(
        self,
        target_node: Registry,
        project: Project,
        target: Target,
        source: SourceFile,
        compile_type: str,
        location: str,
    ) -> None:
        command = source.custom_command
        assert command is not None
        binary_dir = target.binary_dir or project.binary_dir
        working_dir = command.working_dir or binary_dir

        file_node = self.add_file_in_group(target_node, project, source.path)
        compile_node = file_node.add_child(COMPILE_KEY, "")
        if compile_type:
            compile_node.add_child("Type", compile_type)
        compile_node.add_child(
            "Custom_WorkingDirectory", self.path_value(project, working_dir)
        )

        outputs = [p for p in command.outputs if not p.startswith(DIRECTORY_MARKER)]
        compile_node.add_child("Custom_Outputs", self.paths_value(project, outputs))

        inputs: list[str] = []
        for dependency in command.depends:
            resolved = project.resolve_dependency(dependency, target)
            if resolved is None:
                logger.debug("Dropping unresolved input %s of %s", dependency, location)
                continue
            inputs.append(resolved)
        compile_node.add_child("Custom_Inputs", self.paths_value(project, inputs))

        if command.depfile:
            compile_node.add_child(
                "Custom_DependencyFile", self.path_value(project, command.depfile)
            )

        transcriber = CommandLineTranscriber(
            self.tracker,
            project.name,
            source_root=project.source_dir,
            binary_dir=binary_dir,
            working_dir=working_dir,
            launcher=target.rule_launcher,
            allow_multiple=self.config.allow_multiple_commands,
            location=location,
        )
        compile_node.add_child(
            "Custom_CommandLine", transcriber.transcribe(command.command_lines)
        )

        self._ensure_placeholder(project, source)

    def _ensure_placeholder(self, project: Project, source: SourceFile) -> None:
        """Create an empty file for a custom step source that does not exist yet."""
        if not self.config.create_placeholders or source.symbolic:
            return
        path = normalize_path(source.path)
        if self.tracker.is_tracked(project.name, path) or os.path.exists(path):
            return
        placeholder = Path(path)
        placeholder.parent.mkdir(parents=True, exist_ok=True)
        placeholder.touch()
        self.protected_files.add(path)
        logger.info("Created placeholder %s", path)

    # Values

    def path_value(self, project: Project, path: str) -> Value:
        """A path as a header value; tracked files and directories are dynamic."""
        normalized = normalize_path(path)
        if self.tracker.is_tracked(project.name, normalized) or (
            self.tracker.is_tracked_directory(project.name, normalized)
        ):
            return self.tracker.to_dynamic_expression(normalized)
        return path

    def paths_value(self, project: Project, paths: list[str]) -> Value:
        """A ;-separated path list; a single dynamic path stays a DynamicPath."""
        values = [self.path_value(project, path) for path in paths]
        if len(values) == 1 and isinstance(values[0], DynamicPath):
            return values[0]
        return ";".join(
            render(v) if isinstance(v, DynamicPath) else double_introducers(v)
            for v in values
        )

    # Groups

    def display_path(self, path: str) -> tuple[str, bool]:
        """Path used for grouping, and whether its top group is protected.

        The first matching replace prefix is substituted, then the first
        matching hide prefix is stripped. Hiding the first configured
        prefix protects the resulting top group from pruning.
        """
        display = normalize_path(path)
        for old, new in self.config.replace_prefixes.items():
            if display.startswith(old):
                display = new + display[len(old) :]
                break

        protect = False
        for index, prefix in enumerate(self.config.hide_prefixes):
            if display.startswith(prefix):
                protect = index == 0
                display = display[len(prefix) :].lstrip("/")
                break
        return display, protect

    def add_file_in_group(
        self, parent: Registry, project: Project, path: str
    ) -> Registry:
        """Add a %File node below the groups for its directory.

        Returns:
            The new file node.
        """
        display, protect = self.display_path(path)
        node = parent
        for index, segment in enumerate(split_segments(posixpath.dirname(display))):
            node = node.add_unique_child(
                GROUP_KEY, segment, raw=looks_like_expression(segment)
            )
            if protect and index == 0:
                node.protected = True

        return node.add_child(FILE_KEY, self.path_value(project, path))


def _absolute(path: str, base: str) -> str:
    if is_absolute(path):
        return normalize_path(path)
    return normalize_path(f"{base}/{path}")
