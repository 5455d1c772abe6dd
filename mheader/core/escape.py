# SPDX-License-Identifier: MIT
"""Token escaping for the Malterlib header grammar.

A key or value is written bare when it consists only of "safe"
characters, and as a double-quoted, backslash-escaped string otherwise.
Strings that do not need escaping are returned unchanged so regenerated
headers do not churn.

Multi-line values keep their line structure: every line is quoted on its
own and continued with a trailing backslash, re-indented to the column
where the value started.
"""

from __future__ import annotations

import re

# Characters allowed in a bare token.
_UNSAFE_RE = re.compile(r"[^0-9A-Za-z._%&|!+\-]")
# Characters that always force quoting, and comment openers.
_SPECIAL_RE = re.compile(r'["{#\\]|/[*/]')

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
}
_UNESCAPES = {"\\": "\\", '"': '"', "r": "\r", "n": "\n", "t": "\t"}
_ESCAPE_RE = re.compile(r'[\\"\r\n\t]')

# Values that stay bare even when the caller forces escaping.
BOOLEAN_LITERALS = frozenset(["true", "false"])

TAB_WIDTH = 4


def needs_escape(text: str, escape_newlines: bool = False) -> bool:
    """Check whether a token has to be quoted.

    Args:
        text: The key or value to check.
        escape_newlines: True for multi-line aware values.

    Returns:
        True if the token cannot be written bare.
    """
    if not text:
        return True
    if _SPECIAL_RE.search(text):
        return True
    if escape_newlines and "\n" in text:
        return True
    return _UNSAFE_RE.search(text) is not None


def quote(text: str) -> str:
    """Wrap a string in double quotes, backslash-escaping special characters."""
    return '"' + _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text) + '"'


def escape(
    text: str,
    force: bool = False,
    escape_newlines: bool = False,
    prefix: str = "",
) -> str:
    """Return the grammar form of a key or value.

    Args:
        text: The string to escape.
        force: Quote even if the string would be a valid bare token.
            Ignored for the boolean literals "true" and "false".
        escape_newlines: Emit embedded newlines as line continuations
            instead of a single quoted line.
        prefix: Continuation prefix written after each line break in
            multi-line mode (see make_tabs()).

    Returns:
        The string unchanged if no quoting is needed, else the quoted form.
    """
    if force and text in BOOLEAN_LITERALS:
        force = False

    if not force and not needs_escape(text, escape_newlines):
        return text

    if not escape_newlines:
        return quote(text)

    lines = text.split("\n")
    parts = [quote(line + "\n") + "\\\n" + prefix for line in lines[:-1]]
    parts.append(quote(lines[-1]))
    return "".join(parts)


def unescape(text: str) -> str:
    """Reverse escape().

    Accepts bare tokens, quoted strings and multi-line continuations.

    Raises:
        ValueError: If the quoted form is malformed.
    """
    if not text.startswith('"'):
        return text

    result: list[str] = []
    pos = 0
    end = len(text)
    while pos < end:
        if text[pos] != '"':
            raise ValueError(f"expected quote at offset {pos} in {text!r}")
        pos += 1
        while True:
            if pos >= end:
                raise ValueError(f"unterminated string: {text!r}")
            char = text[pos]
            if char == "\\":
                if pos + 1 >= end or text[pos + 1] not in _UNESCAPES:
                    raise ValueError(f"bad escape at offset {pos} in {text!r}")
                result.append(_UNESCAPES[text[pos + 1]])
                pos += 2
            elif char == '"':
                pos += 1
                break
            else:
                result.append(char)
                pos += 1

        if pos < end:
            if text[pos : pos + 2] != "\\\n":
                raise ValueError(f"expected continuation at offset {pos} in {text!r}")
            pos += 2
            while pos < end and text[pos] in " \t":
                pos += 1

    return "".join(result)


def make_tabs(text: str) -> str:
    """Build a continuation prefix as wide as text.

    Tabs count as TAB_WIDTH columns. The prefix uses as many tabs as fit
    and pads the remainder with spaces.
    """
    columns = sum(TAB_WIDTH if char == "\t" else 1 for char in text)
    tabs, spaces = divmod(columns, TAB_WIDTH)
    return "\t" * tabs + " " * spaces
