# SPDX-License-Identifier: MIT
"""Compiler flag parsing for mheader.

The header carries preprocessor defines, search paths and the language
standard as separate settings, so these are extracted from the raw
compile flag strings reported for targets and source files.

Only flags that start a whitespace-separated token are recognized:
-D (define), -I (include directory) and -std= (language standard).
Other flags of the same shape (-O, -W, -f, -g, ...) are consumed and
ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# A flag token, optionally followed by =value or ="quoted value".
_FLAG_RE = re.compile(r'(?:^|(?<= ))-[DIOUWfgs][^= ]+(?:="[^"]+"|=[^" ][^ ]*)?')


@dataclass
class ParsedFlags:
    """Settings extracted from a compile flag string.

    Attributes:
        defines: Preprocessor defines, without the -D prefix.
        include_dirs: Include directories, without the -I prefix.
        standard: Language standard from the last -std= flag, if any.
    """

    defines: list[str] = field(default_factory=list)
    include_dirs: list[str] = field(default_factory=list)
    standard: str | None = None


def parse_compile_flags(flags: str | None) -> ParsedFlags:
    """Extract defines, include directories and standard from flags.

    Args:
        flags: Space-separated compiler flags.

    Returns:
        The recognized settings, in flag order.

    Examples:
        >>> parse_compile_flags("-O2 -DFOO -DBAR=1 -std=c11").defines
        ['FOO', 'BAR=1']
        >>> parse_compile_flags("-std=c11 -Wall").standard
        'c11'
    """
    result = ParsedFlags()
    if not flags:
        return result

    for match in _FLAG_RE.finditer(flags):
        flag = match.group(0)
        if flag.startswith("-D"):
            result.defines.append(flag[2:])
        elif flag.startswith("-I"):
            result.include_dirs.append(flag[2:])
        elif flag.startswith("-std="):
            result.standard = flag[5:]
    return result


def split_definitions(value: str | Iterable[str] | None) -> list[str]:
    """Split a ;-separated definition list, dropping empty entries.

    Accepts either a single string or an iterable of strings, each of
    which may itself be a ;-separated list.
    """
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    result: list[str] = []
    for item in items:
        result.extend(part for part in item.split(";") if part)
    return result


def unique(items: Iterable[str]) -> list[str]:
    """De-duplicate preserving first occurrence order."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
