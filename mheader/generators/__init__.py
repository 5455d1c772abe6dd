# SPDX-License-Identifier: MIT
"""Header generators for mheader."""

from mheader.generators.generator import BaseGenerator, Generator
from mheader.generators.malterlib import MalterlibGenerator

__all__ = [
    "BaseGenerator",
    "Generator",
    "MalterlibGenerator",
]
