# SPDX-License-Identifier: MIT
"""Command line transcription for custom build steps.

A custom build step carries one or more command lines, each a list of
arguments. The header stores them as a single string, so arguments are
quoted where needed and paths the build tool has to resolve are turned
into dynamic expressions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mheader.core.errors import MultipleCommandsError
from mheader.core.escape import escape
from mheader.core.outputs import is_absolute, is_under, normalize_path
from mheader.core.values import DynamicPath, double_introducers

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mheader.core.outputs import OutputPathTracker

logger = logging.getLogger(__name__)

COMMAND_SEPARATOR = " && "


class CommandLineTranscriber:
    """Turns the command lines of one build step into a header string.

    Each argument is processed as follows:
    1. Literal "@" characters are doubled, since "@" introduces
       expressions in the header grammar.
    2. Absolute paths under the project source root or the target binary
       directory, and tracked outputs, become dynamic path expressions.
    3. Anything else has tracked outputs it contains rewritten, and is
       quoted if it contains whitespace.

    Example:
        transcriber = CommandLineTranscriber(
            tracker, "app", source_root="/src", binary_dir="/build/app"
        )
        transcriber.transcribe([["python", "/src/gen.py", "-o", "out.h"]])
    """

    def __init__(
        self,
        tracker: OutputPathTracker,
        project: str,
        *,
        source_root: str,
        binary_dir: str,
        working_dir: str | None = None,
        launcher: str | None = None,
        allow_multiple: bool = True,
        location: str | None = None,
    ) -> None:
        """Create a transcriber for one build step.

        Args:
            tracker: Output registry of the project.
            project: Project name used to query the tracker.
            source_root: Project source root.
            binary_dir: Binary directory of the target owning the step.
            working_dir: Working directory of the step, used to resolve
                relative output references.
            launcher: Rule launcher prefixed to the first command.
            allow_multiple: Whether several command lines may be joined.
            location: Description of the step, for error messages.
        """
        self._tracker = tracker
        self._project = project
        self._source_root = normalize_path(source_root)
        self._binary_dir = normalize_path(binary_dir)
        self._working_dir = working_dir
        self._launcher = launcher
        self._allow_multiple = allow_multiple
        self._location = location

    def transcribe(self, command_lines: Sequence[Sequence[str]]) -> str:
        """Return all command lines as one string.

        Raises:
            MultipleCommandsError: If more than one command line is given
                and multiple commands are not allowed.
        """
        if len(command_lines) > 1 and not self._allow_multiple:
            raise MultipleCommandsError(len(command_lines), self._location)

        commands = [self.transcribe_line(line) for line in command_lines]
        if self._launcher and commands:
            launcher = self.transcribe_line(self._launcher.split())
            commands[0] = f"{launcher} {commands[0]}"
        if len(commands) > 1:
            logger.debug("Joining %d commands for %s", len(commands), self._location)
        return COMMAND_SEPARATOR.join(commands)

    def transcribe_line(self, arguments: Sequence[str]) -> str:
        """Return one command line as a string."""
        return " ".join(self.transcribe_argument(arg) for arg in arguments)

    def transcribe_argument(self, arg: str) -> str:
        """Return one argument in header form."""
        arg = double_introducers(arg)

        if self._is_dynamic_path(arg):
            return DynamicPath(normalize_path(arg)).render()

        tracked = self._tracker.lookup(self._project, arg, self._working_dir)
        if tracked is not None:
            return DynamicPath(tracked).render()

        rewritten = self._tracker.rewrite_embedded(self._project, arg)
        if any(char.isspace() for char in rewritten):
            return escape(rewritten)
        return rewritten

    def _is_dynamic_path(self, arg: str) -> bool:
        if not is_absolute(arg):
            return False
        normalized = normalize_path(arg)
        return is_under(normalized, self._source_root) or is_under(
            normalized, self._binary_dir
        )
