# SPDX-License-Identifier: MIT
"""Load a build graph from a JSON description.

The description is either a single project object or an object with a
"projects" list. A project looks like:

    {
        "name": "myproject",
        "source_dir": "/src",
        "binary_dir": "/build",
        "list_files": ["/src/CMakeLists.txt"],
        "configurations": ["Debug"],
        "targets": [
            {
                "name": "mylib",
                "type": "static_library",
                "sources": [{"path": "lib.c", "language": "C"}],
                "compile_settings": {"C": {"include_dirs": ["include"]}},
                "dependencies": ["other", {"target": "gen", "link": false}]
            }
        ]
    }

Relative project directories are taken relative to the description file,
relative source paths relative to the target's source directory, and
relative custom step paths (except inputs) relative to the target's
binary directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mheader.core.errors import GraphLoadError
from mheader.core.outputs import is_absolute, normalize_path
from mheader.core.project import Project
from mheader.core.target import (
    CompileSettings,
    CustomCommand,
    SourceFile,
    Target,
    TargetType,
)

logger = logging.getLogger(__name__)


def load_projects(path: Path | str) -> list[Project]:
    """Load all projects from a JSON graph description.

    Args:
        path: Path to the JSON file.

    Returns:
        The projects, in file order.

    Raises:
        GraphLoadError: If the file cannot be read or is malformed.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise GraphLoadError(f"cannot load build graph: {e}", str(path)) from e

    if not isinstance(data, dict):
        raise GraphLoadError("build graph must be a JSON object", str(path))

    base = path.absolute().parent
    entries = data.get("projects", [data])
    if not isinstance(entries, list):
        raise GraphLoadError("'projects' must be a list", str(path))

    projects = [project_from_dict(entry, base) for entry in entries]
    logger.debug("Loaded %d projects from %s", len(projects), path)
    return projects


def project_from_dict(data: Any, base: Path | None = None) -> Project:
    """Build a Project (with its targets) from a parsed description.

    Raises:
        GraphLoadError: If the description is malformed.
    """
    if not isinstance(data, dict) or "name" not in data:
        raise GraphLoadError("project must be an object with a 'name'")
    name = str(data["name"])
    base = base or Path.cwd()

    project = Project(
        name,
        source_dir=_resolve_dir(data.get("source_dir"), base) or base,
        binary_dir=_resolve_dir(data.get("binary_dir"), base) or base / "build",
        list_files=_str_list(data, "list_files", name),
        configurations=_str_list(data, "configurations", name) or ["Debug"],
    )

    targets = data.get("targets", [])
    if not isinstance(targets, list):
        raise GraphLoadError("'targets' must be a list", name)

    for entry in targets:
        try:
            project.add_target(_target_from_dict(entry, project))
        except ValueError as e:
            raise GraphLoadError(str(e), name) from e

    # Dependencies may refer to targets defined later
    for entry in targets:
        target = project.get_target(str(entry["name"]))
        assert target is not None
        for dependency in entry.get("dependencies", []):
            _add_dependency(project, target, dependency)

    return project


def _target_from_dict(data: Any, project: Project) -> Target:
    if not isinstance(data, dict) or "name" not in data:
        raise GraphLoadError("target must be an object with a 'name'", project.name)
    name = str(data["name"])
    location = f"{project.name}/{name}"

    try:
        target_type = TargetType(data.get("type", TargetType.PROGRAM.value))
    except ValueError as e:
        raise GraphLoadError(
            f"unknown target type: {data.get('type')}", location
        ) from e

    target = Target(
        name,
        target_type=target_type,
        source_dir=_resolve_dir(data.get("source_dir"), Path(project.source_dir)),
        binary_dir=_resolve_dir(data.get("binary_dir"), Path(project.binary_dir)),
        rule_launcher=data.get("rule_launcher"),
    )
    source_dir = str(target.source_dir or project.source_dir)
    binary_dir = str(target.binary_dir or project.binary_dir)

    for entry in data.get("sources", []):
        target.add_source(_source_from_dict(entry, source_dir, binary_dir, location))

    settings = data.get("compile_settings", {})
    if not isinstance(settings, dict):
        raise GraphLoadError("'compile_settings' must be an object", location)
    for language, values in settings.items():
        if not isinstance(values, dict):
            raise GraphLoadError(
                f"compile settings for {language} must be an object", location
            )
        target.compile_settings[language] = CompileSettings(
            include_dirs=_str_list(values, "include_dirs", location),
            defines=_str_list(values, "defines", location),
            flags=str(values.get("flags", "")),
        )

    return target


def _source_from_dict(
    data: Any, source_dir: str, binary_dir: str, location: str
) -> SourceFile:
    if isinstance(data, str):
        data = {"path": data}
    if not isinstance(data, dict) or "path" not in data:
        raise GraphLoadError(
            "source must be a path or an object with a 'path'", location
        )

    command = None
    if data.get("custom_command") is not None:
        command = _command_from_dict(data["custom_command"], binary_dir, location)

    properties = data.get("properties", {})
    if not isinstance(properties, dict):
        raise GraphLoadError("source 'properties' must be an object", location)

    return SourceFile(
        path=_resolve_path(str(data["path"]), source_dir),
        language=str(data.get("language", "")),
        custom_command=command,
        generated=bool(data.get("generated", False)),
        symbolic=bool(data.get("symbolic", False)),
        header_only=bool(data.get("header_only", False)),
        object_library=data.get("object_library"),
        properties=dict(properties),
    )


def _command_from_dict(data: Any, binary_dir: str, location: str) -> CustomCommand:
    """Build a custom step; its file paths are taken relative to binary_dir.

    Declared inputs stay as written, since they may name targets.
    """
    if not isinstance(data, dict):
        raise GraphLoadError("custom_command must be an object", location)

    lines = data.get("command_lines", [])
    if not isinstance(lines, list) or not all(isinstance(line, list) for line in lines):
        raise GraphLoadError("command_lines must be a list of argument lists", location)

    def paths(key: str) -> list[str]:
        return [_resolve_path(p, binary_dir) for p in _str_list(data, key, location)]

    def optional_path(key: str) -> str | None:
        value = data.get(key)
        return _resolve_path(str(value), binary_dir) if value else None

    return CustomCommand(
        command_lines=[[str(arg) for arg in line] for line in lines],
        outputs=paths("outputs"),
        byproducts=paths("byproducts"),
        depends=_str_list(data, "depends", location),
        working_dir=optional_path("working_dir"),
        depfile=optional_path("depfile"),
        symbolic=set(paths("symbolic")),
    )


def _add_dependency(project: Project, target: Target, data: Any) -> None:
    link = True
    if isinstance(data, dict):
        link = bool(data.get("link", True))
        data = data.get("target")
    dependency = project.get_target(str(data))
    if dependency is None:
        raise GraphLoadError(
            f"unknown dependency: {data}", f"{project.name}/{target.name}"
        )
    if link:
        target.link(dependency)
    else:
        target.depends_on(dependency)


def _resolve_dir(value: Any, base: Path) -> Path | None:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else base / path


def _resolve_path(path: str, base: str) -> str:
    if is_absolute(path):
        return normalize_path(path)
    return normalize_path(f"{base}/{path}")


def _str_list(data: dict[str, Any], key: str, location: str) -> list[str]:
    value = data.get(key, [])
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise GraphLoadError(f"'{key}' must be a list of strings", location)
    return [str(item) for item in value]
