# SPDX-License-Identifier: MIT
"""Custom exceptions for mheader.

All mheader exceptions inherit from MheaderError, which includes
optional location information for better error messages.
"""

from __future__ import annotations


class MheaderError(Exception):
    """Base class for all mheader exceptions.

    Attributes:
        message: The error message.
        location: Optional location (target, file or project) where the
            error occurred.
    """

    def __init__(
        self,
        message: str,
        location: str | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ConfigError(MheaderError):
    """Invalid generator configuration."""


class GraphLoadError(MheaderError):
    """A build graph description could not be loaded."""


class GenerateError(MheaderError):
    """Error during the generate phase.

    Raised when header generation cannot continue.
    """


class UnknownLanguageError(GenerateError):
    """Source language has no configured compile type.

    Attributes:
        language: The unrecognized language name.
    """

    def __init__(
        self,
        language: str,
        location: str | None = None,
    ) -> None:
        self.language = language
        super().__init__(
            f"language not recognized, add a compile type mapping for: {language}",
            location,
        )


class MultipleCommandsError(GenerateError):
    """A custom build step has more than one command line.

    Attributes:
        count: Number of command lines declared.
    """

    def __init__(
        self,
        count: int,
        location: str | None = None,
    ) -> None:
        self.count = count
        super().__init__(
            f"multiple commands for custom commands not supported ({count} given)",
            location,
        )


class MultipleConfigurationsError(GenerateError):
    """More than one build configuration is active.

    Attributes:
        configurations: The active configuration names.
    """

    def __init__(
        self,
        configurations: list[str],
        location: str | None = None,
    ) -> None:
        self.configurations = configurations
        names = ", ".join(configurations)
        super().__init__(
            f"exactly one build configuration is supported, got: {names}", location
        )
