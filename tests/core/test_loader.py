# SPDX-License-Identifier: MIT
"""Tests for mheader.core.loader."""

import json

import pytest

from mheader.core.errors import GraphLoadError
from mheader.core.loader import load_projects, project_from_dict
from mheader.core.target import TargetType


def write_graph(tmp_path, data):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(data))
    return path


GRAPH = {
    "name": "demo",
    "source_dir": "src",
    "binary_dir": "build",
    "list_files": ["src/CMakeLists.txt"],
    "targets": [
        {
            "name": "app",
            "type": "program",
            "sources": ["main.c", {"path": "/abs/util.c", "language": "C"}],
            "dependencies": ["lib", {"target": "gen", "link": False}],
        },
        {
            "name": "lib",
            "type": "static_library",
            "compile_settings": {
                "C": {"include_dirs": ["include"], "defines": ["X"], "flags": "-O2"}
            },
        },
        {
            "name": "gen",
            "type": "utility",
            "rule_launcher": "ccache",
            "sources": [
                {
                    "path": "gen.h.rule",
                    "symbolic": True,
                    "custom_command": {
                        "command_lines": [["python", "gen.py"]],
                        "outputs": ["/out/gen.h"],
                        "depends": ["gen.py"],
                        "working_dir": "/out",
                        "symbolic": ["/out/stamp"],
                    },
                }
            ],
        },
    ],
}


class TestLoadProjects:
    def test_single_project(self, tmp_path):
        projects = load_projects(write_graph(tmp_path, GRAPH))
        assert len(projects) == 1
        project = projects[0]
        assert project.name == "demo"
        assert project.source_dir == (tmp_path / "src").as_posix()
        assert project.binary_dir == (tmp_path / "build").as_posix()
        assert project.configurations == ["Debug"]
        assert [t.name for t in project.targets] == ["app", "lib", "gen"]

    def test_project_list(self, tmp_path):
        data = {
            "projects": [{"name": "a"}, {"name": "b", "configurations": ["Release"]}]
        }
        projects = load_projects(write_graph(tmp_path, data))
        assert [p.name for p in projects] == ["a", "b"]
        assert projects[1].config_name == "Release"

    def test_sources(self, tmp_path):
        project = load_projects(write_graph(tmp_path, GRAPH))[0]
        app = project.get_target("app")
        assert [s.path for s in app.sources] == [
            (tmp_path / "src" / "main.c").as_posix(),
            "/abs/util.c",
        ]
        assert app.sources[1].language == "C"

    def test_dependencies(self, tmp_path):
        project = load_projects(write_graph(tmp_path, GRAPH))[0]
        app = project.get_target("app")
        deps = {d.target.name: d.link for d in app.dependencies}
        assert deps == {"lib": True, "gen": False}

    def test_compile_settings(self, tmp_path):
        project = load_projects(write_graph(tmp_path, GRAPH))[0]
        lib = project.get_target("lib")
        assert lib.target_type == TargetType.STATIC_LIBRARY
        settings = lib.compile_settings["C"]
        assert settings.include_dirs == ["include"]
        assert settings.defines == ["X"]
        assert settings.flags == "-O2"

    def test_custom_command(self, tmp_path):
        project = load_projects(write_graph(tmp_path, GRAPH))[0]
        gen = project.get_target("gen")
        assert gen.rule_launcher == "ccache"
        source = gen.sources[0]
        assert source.symbolic
        command = source.custom_command
        assert command.command_lines == [["python", "gen.py"]]
        assert command.outputs == ["/out/gen.h"]
        assert command.depends == ["gen.py"]
        assert command.working_dir == "/out"
        assert command.symbolic == {"/out/stamp"}


    def test_relative_custom_step_paths(self, tmp_path):
        data = {
            "name": "p",
            "source_dir": "src",
            "binary_dir": "build",
            "targets": [
                {
                    "name": "gen",
                    "sources": [
                        {
                            "path": "gen.rule",
                            "custom_command": {
                                "command_lines": [["gen"]],
                                "outputs": ["gen.h", "/abs/other.h"],
                                "byproducts": ["gen.log"],
                                "depends": ["input.txt", "tool"],
                                "working_dir": "sub",
                                "depfile": "gen.d",
                                "symbolic": ["stamp"],
                            },
                        }
                    ],
                }
            ],
        }
        source = project_from_dict(data, tmp_path).get_target("gen").sources[0]
        command = source.custom_command
        build = (tmp_path / "build").as_posix()
        assert command.outputs == [f"{build}/gen.h", "/abs/other.h"]
        assert command.byproducts == [f"{build}/gen.log"]
        assert command.working_dir == f"{build}/sub"
        assert command.depfile == f"{build}/gen.d"
        assert command.symbolic == {f"{build}/stamp"}
        # Inputs may be target names
        assert command.depends == ["input.txt", "tool"]

class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(GraphLoadError):
            load_projects(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text("{")
        with pytest.raises(GraphLoadError) as exc_info:
            load_projects(path)
        assert exc_info.value.location == str(path)

    def test_not_an_object(self, tmp_path):
        with pytest.raises(GraphLoadError):
            load_projects(write_graph(tmp_path, ["a"]))

    def test_missing_name(self):
        with pytest.raises(GraphLoadError):
            project_from_dict({"targets": []})

    def test_unknown_target_type(self, tmp_path):
        data = {"name": "p", "targets": [{"name": "t", "type": "bogus"}]}
        with pytest.raises(GraphLoadError, match="bogus"):
            project_from_dict(data, tmp_path)

    def test_unknown_dependency(self, tmp_path):
        data = {"name": "p", "targets": [{"name": "t", "dependencies": ["nope"]}]}
        with pytest.raises(GraphLoadError, match="nope"):
            project_from_dict(data, tmp_path)

    def test_duplicate_target(self, tmp_path):
        data = {"name": "p", "targets": [{"name": "a"}, {"name": "a"}]}
        with pytest.raises(GraphLoadError, match="already exists") as exc_info:
            project_from_dict(data, tmp_path)
        assert exc_info.value.location == "p"

    def test_bad_command_lines(self, tmp_path):
        data = {
            "name": "p",
            "targets": [
                {
                    "name": "t",
                    "sources": [
                        {"path": "x", "custom_command": {"command_lines": "ls"}}
                    ],
                }
            ],
        }
        with pytest.raises(GraphLoadError):
            project_from_dict(data, tmp_path)
