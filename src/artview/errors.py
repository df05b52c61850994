"""Exception hierarchy for artifact generation and host synchronisation."""

from __future__ import annotations

from pathlib import Path


class ArtError(Exception):
    """Base class for every error raised by artview."""


class ArtNotFoundError(ArtError):
    """A referenced file does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"File not found: {self.path}")


class GenerationError(ArtError):
    """An external toolchain rejected the content.

    ``reason`` is the toolchain's own message, ``element`` the offending
    source fragment and ``line`` the source line when they could be
    recovered from the toolchain output.
    """

    def __init__(
        self,
        reason: str,
        element: str = "",
        line: int | None = None,
    ) -> None:
        self.reason = reason
        self.element = element
        self.line = line
        message = reason or "Generation failed"
        if line is not None:
            message = f"{message} (line {line})"
        if element:
            message = f"{message}: {element}"
        super().__init__(message)


class ToolchainMissingError(ArtError):
    """A required external binary is not on ``PATH``."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"Required binary not found on PATH: {binary}")


class ArtIOError(ArtError):
    """Reading or writing a scratch file failed."""


class DecodeError(ArtError):
    """An artifact could not be loaded as an image."""


class FoldMismatchError(ArtError):
    """Fold commands disagree with the folds of the current document."""


class MetadataError(ArtError):
    """Host-supplied JSON could not be parsed."""
