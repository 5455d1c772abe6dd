# SPDX-License-Identifier: MIT
"""Tests for mheader.core.target."""

from pathlib import Path

import pytest

from mheader.core.target import (
    CompileSettings,
    CustomCommand,
    SourceFile,
    Target,
    TargetType,
)


class TestCompileSettings:
    def test_creation(self):
        settings = CompileSettings()
        assert settings.include_dirs == []
        assert settings.defines == []
        assert settings.flags == ""


class TestSourceFile:
    def test_defaults(self):
        source = SourceFile("/src/main.c")
        assert source.language == ""
        assert source.custom_command is None
        assert not source.generated
        assert not source.symbolic

    def test_get_property(self):
        source = SourceFile("/src/main.c", properties={"COMPILE_FLAGS": "-DX"})
        assert source.get_property("COMPILE_FLAGS") == "-DX"
        assert source.get_property("COMPILE_DEFINITIONS") is None


class TestTarget:
    def test_creation(self):
        target = Target("app")
        assert target.name == "app"
        assert target.target_type == TargetType.PROGRAM
        assert target.sources == []
        assert target.dependencies == []

    def test_target_type_from_string(self):
        target = Target("lib", target_type="static_library")
        assert target.target_type == TargetType.STATIC_LIBRARY

    def test_invalid_target_type(self):
        with pytest.raises(ValueError):
            Target("lib", target_type="bogus")

    def test_link(self):
        lib = Target("lib", target_type=TargetType.STATIC_LIBRARY)
        app = Target("app")
        assert app.link(lib) is app
        assert len(app.dependencies) == 1
        assert app.dependencies[0].target is lib
        assert app.dependencies[0].link

    def test_depends_on_is_not_linked(self):
        tool = Target("tool", target_type=TargetType.UTILITY)
        app = Target("app")
        app.depends_on(tool)
        assert not app.dependencies[0].link

    def test_no_duplicate_dependencies(self):
        lib = Target("lib", target_type=TargetType.STATIC_LIBRARY)
        app = Target("app")
        app.link(lib)
        app.link(lib)
        app.depends_on(lib)
        assert len(app.dependencies) == 1

    def test_add_sources_with_base(self):
        target = Target("app")
        target.add_sources(["main.c", "/abs/util.c"], base="/src", language="C")
        assert [s.path for s in target.sources] == ["/src/main.c", "/abs/util.c"]
        assert all(s.language == "C" for s in target.sources)

    def test_add_source_object(self):
        target = Target("app")
        source = SourceFile("/src/main.c", language="C")
        assert target.add_source(source) is source

    def test_add_custom_command(self):
        target = Target("gen", target_type=TargetType.UTILITY)
        source = target.add_custom_command(
            Path("/build/gen.h"),
            [["python", "gen.py"]],
            outputs=["/build/gen.h"],
        )
        assert source.path == "/build/gen.h"
        assert isinstance(source.custom_command, CustomCommand)
        assert source.custom_command.command_lines == [["python", "gen.py"]]
        assert source.custom_command.outputs == ["/build/gen.h"]

    def test_settings_created_on_demand(self):
        target = Target("app")
        settings = target.settings("C")
        settings.defines.append("X")
        assert target.settings("C") is settings
        assert target.compile_settings["C"].defines == ["X"]

    def test_languages(self):
        target = Target("app")
        target.add_source("/src/main.cpp", language="CXX")
        target.add_source("/src/util.c", language="C")
        target.add_source("/src/readme.txt")
        target.settings("ASM")
        assert target.languages() == ["ASM", "C", "CXX"]

    def test_is_static_like(self):
        assert Target("a", target_type="static_library").is_static_like
        assert Target("a", target_type="object").is_static_like
        assert not Target("a", target_type="shared_library").is_static_like
        assert not Target("a").is_static_like

    def test_equality_by_name(self):
        assert Target("a") == Target("a", target_type="utility")
        assert len({Target("a"), Target("a"), Target("b")}) == 2
