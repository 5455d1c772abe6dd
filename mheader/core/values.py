# SPDX-License-Identifier: MIT
"""Late-bound values embedded in a Malterlib header.

Most values are literal strings. Paths that only exist once the build
tool has run are written as dynamic expressions instead, which the tool
resolves to an absolute path when it evaluates the header.

`DynamicPath` is the tagged form of such an expression. Code that builds
the header passes `str | DynamicPath` around, so whether a value is an
expression is a matter of type, not of inspecting the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Marker that introduces an expression inside a value.
EXPRESSION_INTRODUCER = "@"

# A rendered DynamicPath; group 1 is the quoted path.
EXPRESSION_RE = re.compile(r"@\('((?:[^'\\]|\\.)*)'->MakeAbsolute\(\)\)")
_FULL_EXPRESSION_RE = re.compile(r"^" + EXPRESSION_RE.pattern + r"$")


def _quote_path(path: str) -> str:
    return path.replace("\\", "\\\\").replace("'", "\\'")


def _unquote_path(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


@dataclass(frozen=True)
class DynamicPath:
    """A path resolved to an absolute path by the build tool.

    Attributes:
        path: The path as known at generation time.
    """

    path: str

    def render(self) -> str:
        """Return the expression text written to the header."""
        return f"@('{_quote_path(self.path)}'->MakeAbsolute())"

    @classmethod
    def parse(cls, text: str) -> DynamicPath | None:
        """Recover a DynamicPath from its rendered text.

        Returns:
            The DynamicPath, or None if text is not exactly one expression.
        """
        match = _FULL_EXPRESSION_RE.match(text)
        if match is None:
            return None
        return cls(_unquote_path(match.group(1)))

    def __str__(self) -> str:
        return self.render()


Value = str | DynamicPath


def looks_like_expression(text: str) -> bool:
    """Check whether text contains any expression, not only dynamic paths."""
    return EXPRESSION_INTRODUCER + "(" in text


def render(value: Value) -> str:
    """Render a value as header text (expressions unescaped)."""
    if isinstance(value, DynamicPath):
        return value.render()
    return value


def double_introducers(text: str) -> str:
    """Escape literal expression introducers by doubling them."""
    return text.replace(EXPRESSION_INTRODUCER, EXPRESSION_INTRODUCER * 2)
