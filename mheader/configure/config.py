# SPDX-License-Identifier: MIT
"""Generator configuration for mheader.

GeneratorConfig holds everything that shapes the header apart from the
build graph itself: how file paths are displayed, where the transient
output directory is, and how source languages map to compile types.

The configuration is passed to the generator explicitly. It can be read
from MALTERLIB_* environment variables and from a JSON file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from mheader.core.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MALTERLIB_"
# Also accepted; MALTERLIB_* wins when both are set.
LEGACY_ENV_PREFIX = "CMAKE_MALTERLIB_"
LANGUAGE_ENV_NAME = "LANGUAGE_"

# Compile types for languages known out of the box.
DEFAULT_LANGUAGES: dict[str, str] = {
    "C": "C",
    "CXX": "C++",
    "OBJC": "ObjC",
    "OBJCXX": "ObjC++",
    "ASM": "Assembler",
}

_TRUE_VALUES = frozenset(["1", "true", "yes", "on"])


def _getenv(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(ENV_PREFIX + name)
    if value is None:
        value = environ.get(LEGACY_ENV_PREFIX + name)
    return value


def _split_list(value: str) -> list[str]:
    return [item for item in value.split(";") if item]


def parse_replacements(value: str) -> dict[str, str]:
    """Parse ;-separated OLD=NEW prefix replacements.

    Raises:
        ConfigError: If an entry has no "=" or an empty OLD part.
    """
    mapping: dict[str, str] = {}
    for item in _split_list(value):
        old, sep, new = item.partition("=")
        if not sep or not old:
            raise ConfigError(f"invalid prefix replacement (expected OLD=NEW): {item}")
        mapping[old] = new
    return mapping


@dataclass
class GeneratorConfig:
    """Settings for the Malterlib header generator.

    Attributes:
        hide_prefixes: Path prefixes stripped from displayed file paths.
            Files under the first prefix get protected groups.
        replace_prefixes: Literal path prefix substitutions applied to
            displayed file paths.
        transient_root: Directory custom step outputs are produced in.
            Defaults to the project binary directory.
        languages: Compile type for each source language.
        allow_multiple_commands: Join several command lines of one step
            with "&&" instead of failing.
        create_placeholders: Create empty files for missing custom step
            sources.
        header_suffix: Suffix of the generated header file.
    """

    hide_prefixes: list[str] = field(default_factory=list)
    replace_prefixes: dict[str, str] = field(default_factory=dict)
    transient_root: str | None = None
    languages: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LANGUAGES))
    allow_multiple_commands: bool = True
    create_placeholders: bool = True
    header_suffix: str = ".MHeader"

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        base: GeneratorConfig | None = None,
    ) -> GeneratorConfig:
        """Build a configuration from MALTERLIB_* environment variables.

        Recognized variables:
            MALTERLIB_HIDEPREFIXES: ;-separated prefixes to hide.
            MALTERLIB_REPLACEPREFIXES: ;-separated OLD=NEW replacements.
            MALTERLIB_TRANSIENT_DIR: transient output directory.
            MALTERLIB_SINGLE_COMMAND: reject steps with several commands.
            MALTERLIB_LANGUAGE_<LANG>: compile type for language LANG.

        Each variable is also read with a CMAKE_ prefix
        (e.g. CMAKE_MALTERLIB_HIDEPREFIXES).

        Args:
            environ: Environment to read (default: os.environ).
            base: Configuration to start from (default: defaults).

        Returns:
            A new configuration.
        """
        if environ is None:
            environ = os.environ
        config = cls.from_dict(base.to_dict()) if base is not None else cls()

        hide = _getenv(environ, "HIDEPREFIXES")
        if hide:
            config.hide_prefixes = _split_list(hide)

        replace = _getenv(environ, "REPLACEPREFIXES")
        if replace:
            config.replace_prefixes = parse_replacements(replace)

        transient = _getenv(environ, "TRANSIENT_DIR")
        if transient:
            config.transient_root = transient

        single = _getenv(environ, "SINGLE_COMMAND")
        if single is not None:
            config.allow_multiple_commands = single.lower() not in _TRUE_VALUES

        for prefix in (LEGACY_ENV_PREFIX, ENV_PREFIX):
            language_prefix = prefix + LANGUAGE_ENV_NAME
            for name, value in environ.items():
                if name.startswith(language_prefix) and value:
                    config.languages[name[len(language_prefix) :]] = value

        return config

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GeneratorConfig:
        """Build a configuration from a dictionary (e.g. parsed JSON).

        Raises:
            ConfigError: On unknown keys or wrongly typed values.
        """
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

        config = cls()
        if "hide_prefixes" in data:
            config.hide_prefixes = _as_str_list(data["hide_prefixes"], "hide_prefixes")
        if "replace_prefixes" in data:
            config.replace_prefixes = _as_str_dict(
                data["replace_prefixes"], "replace_prefixes"
            )
        if "languages" in data:
            config.languages = _as_str_dict(data["languages"], "languages")
        if data.get("transient_root") is not None:
            config.transient_root = str(data["transient_root"])
        if "allow_multiple_commands" in data:
            config.allow_multiple_commands = bool(data["allow_multiple_commands"])
        if "create_placeholders" in data:
            config.create_placeholders = bool(data["create_placeholders"])
        if "header_suffix" in data:
            config.header_suffix = str(data["header_suffix"])
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(cls, path: Path | str) -> GeneratorConfig:
        """Load a configuration from a JSON file.

        Raises:
            ConfigError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"cannot load configuration: {e}", str(path)) from e
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a JSON object", str(path))
        logger.debug("Loaded configuration from %s", path)
        return cls.from_dict(data)

    def save(self, path: Path | str) -> None:
        """Save the configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")


def _as_str_list(value: Any, name: str) -> list[str]:
    if isinstance(value, str):
        return _split_list(value)
    if not isinstance(value, list):
        raise ConfigError(f"{name} must be a list of strings")
    return [str(item) for item in value]


def _as_str_dict(value: Any, name: str) -> dict[str, str]:
    if isinstance(value, str):
        return parse_replacements(value)
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be an object of strings")
    return {str(k): str(v) for k, v in value.items()}
