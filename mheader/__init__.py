# SPDX-License-Identifier: MIT
"""
mheader: Generate Malterlib header files from a build graph.

mheader walks the projects, targets and custom build steps of a build
graph and writes one .MHeader description per project for the Malterlib
build system.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
from mheader.configure.config import GeneratorConfig  # noqa: E402
from mheader.core.loader import load_projects  # noqa: E402
from mheader.core.project import Project  # noqa: E402
from mheader.core.registry import Registry  # noqa: E402
from mheader.core.target import SourceFile, Target, TargetType  # noqa: E402
from mheader.generators.malterlib import MalterlibGenerator  # noqa: E402

__all__ = [
    "GeneratorConfig",
    "MalterlibGenerator",
    "Project",
    "Registry",
    "SourceFile",
    "Target",
    "TargetType",
    "__version__",
    "load_projects",
]
