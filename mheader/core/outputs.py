# SPDX-License-Identifier: MIT
"""Registry of files produced beneath the transient output directory.

Custom build steps produce files inside a directory that does not exist
when the header is generated. References to those files are written as
dynamic expressions so the build tool resolves them when it evaluates the
header.

Outputs are registered per project during a collection pass over all
targets, before any tree is built. The emission pass can then recognize
references to outputs of any target in the project, including targets
that have not been visited yet.
"""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path

from mheader.core.values import EXPRESSION_RE, DynamicPath, Value

logger = logging.getLogger(__name__)


def normalize_path(path: str | Path) -> str:
    """Collapse a path to forward-slash, normalized form."""
    text = str(path).replace("\\", "/")
    if not text:
        return text
    return posixpath.normpath(text)


def is_absolute(path: str) -> bool:
    """Check for a POSIX or drive-letter absolute path."""
    return path.startswith("/") or re.match(r"^[A-Za-z]:[/\\]", path) is not None


def is_under(path: str, root: str) -> bool:
    """Check whether path equals root or lies beneath it."""
    if not root:
        return False
    root = root.rstrip("/")
    return path == root or path.startswith(root + "/")


class OutputPathTracker:
    """Per-project sets of output paths under a transient root.

    Only explicitly registered paths are tracked. Other paths under the
    same root are passed through unchanged.

    Example:
        tracker = OutputPathTracker("/build/out")
        tracker.register_output("app", "/build/out/gen.h")
        tracker.is_tracked("app", "/build/out/gen.h")    # True
        tracker.is_tracked("app", "/build/out/other.h")  # False
    """

    def __init__(self, transient_root: str | Path | None = None) -> None:
        self.transient_root = normalize_path(transient_root) if transient_root else ""
        self._roots: dict[str, str] = {}
        self._outputs: dict[str, set[str]] = {}
        self._directories: dict[str, set[str]] = {}
        self._patterns: dict[str, re.Pattern[str] | None] = {}

    def set_transient_root(self, project: str, root: str | Path) -> None:
        """Use a project-specific transient root instead of the default one."""
        self._roots[project] = normalize_path(root)
        self._patterns.pop(project, None)

    def transient_root_for(self, project: str) -> str:
        """The transient root used for a project."""
        return self._roots.get(project, self.transient_root)

    def register_output(self, project: str, path: str | Path) -> None:
        """Track a produced file and its containing directory."""
        normalized = normalize_path(path)
        self._outputs.setdefault(project, set()).add(normalized)
        self._patterns.pop(project, None)
        self.register_directory(project, posixpath.dirname(normalized))
        logger.debug("Tracking output %s for %s", normalized, project)

    def register_directory(self, project: str, path: str | Path) -> None:
        """Track a directory that will be created by the build."""
        self._directories.setdefault(project, set()).add(normalize_path(path))

    def is_tracked(self, project: str, path: str | Path) -> bool:
        """Check whether path is a registered output under the transient root."""
        normalized = normalize_path(path)
        if not is_under(normalized, self.transient_root_for(project)):
            return False
        return normalized in self._outputs.get(project, ())

    def is_tracked_directory(self, project: str, path: str | Path) -> bool:
        """Check whether path is a registered directory under the transient root."""
        normalized = normalize_path(path)
        if not is_under(normalized, self.transient_root_for(project)):
            return False
        return normalized in self._directories.get(project, ())

    def lookup(
        self, project: str, arg: str, working_dir: str | None = None
    ) -> str | None:
        """Find the tracked output an argument refers to.

        The argument is looked up as given first, then relative to the
        working directory.

        Returns:
            The tracked path, or None if the argument is not tracked.
        """
        if not arg:
            return None
        if self.is_tracked(project, arg):
            return normalize_path(arg)
        if working_dir:
            joined = working_dir.rstrip("/") + "/" + arg
            if self.is_tracked(project, joined):
                return normalize_path(joined)
        return None

    @staticmethod
    def to_dynamic_expression(value: Value) -> DynamicPath:
        """Wrap a path in a late-bound absolute path expression.

        Idempotent: a DynamicPath, or the rendered text of one, is
        returned as the same expression.
        """
        if isinstance(value, DynamicPath):
            return value
        parsed = DynamicPath.parse(value)
        if parsed is not None:
            return parsed
        return DynamicPath(value)

    def rewrite_embedded(self, project: str, text: str) -> str:
        """Replace every tracked path inside text with its expression.

        Longer paths win over paths that are prefixes of them. Paths that
        are already inside an expression are left alone, so rewriting is
        idempotent.
        """
        pattern = self._pattern(project)
        if pattern is None or not text:
            return text

        def replace(match: re.Match[str]) -> str:
            return DynamicPath(match.group(0)).render()

        pieces: list[str] = []
        position = 0
        for expression in EXPRESSION_RE.finditer(text):
            pieces.append(pattern.sub(replace, text[position : expression.start()]))
            pieces.append(expression.group(0))
            position = expression.end()
        pieces.append(pattern.sub(replace, text[position:]))
        return "".join(pieces)

    def _pattern(self, project: str) -> re.Pattern[str] | None:
        if project not in self._patterns:
            paths = sorted(self._outputs.get(project, ()), key=len, reverse=True)
            root = self.transient_root_for(project)
            paths = [p for p in paths if is_under(p, root)]
            if paths:
                alternatives = "|".join(re.escape(p) for p in paths)
                self._patterns[project] = re.compile(alternatives)
            else:
                self._patterns[project] = None
        return self._patterns[project]

    def outputs(self, project: str) -> list[str]:
        """Sorted outputs registered for a project."""
        return sorted(self._outputs.get(project, ()))

    def directories(self, project: str) -> list[str]:
        """Sorted output directories registered for a project."""
        return sorted(self._directories.get(project, ()))

    def all_outputs(self) -> list[str]:
        """Sorted outputs registered across all projects."""
        combined: set[str] = set()
        for paths in self._outputs.values():
            combined.update(paths)
        return sorted(combined)
