"""Host-facing JSON types.

Pydantic models with camelCase aliases, accepting either spelling.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from artview.errors import MetadataError


class Metadata(BaseModel):
    """Viewport state of the host window, replaced wholesale on every update.

    ``start``/``end`` is the visible document line range, ``width``/``height``
    the text window size in cells, ``row``/``col`` its top-left cell on the
    terminal screen and ``char_height`` the pixel height of one cell.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start: int = 1
    end: int = 1
    width: int = 1
    height: int = 1
    cursor: int = 1
    row: int = 0
    col: int = 0
    char_height: int | None = Field(default=None, alias="charHeight")

    @property
    def file_range(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def viewport(self) -> tuple[int, int]:
        return (self.width, self.height)


class Envelope(BaseModel):
    """Result of one boundary call."""

    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> Envelope:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> Envelope:
        return cls(ok=False, error=error)


_FOLD_COMMANDS = TypeAdapter(list[tuple[int, int]])


def parse_metadata(raw: str) -> Metadata:
    try:
        return Metadata.model_validate_json(raw)
    except ValidationError as exc:
        raise MetadataError(f"Invalid metadata: {exc}") from exc


def parse_fold_commands(raw: str) -> list[tuple[int, int | None]]:
    """Parse ``[[line, end], ...]``; a negative end becomes ``None`` (open)."""
    try:
        pairs = _FOLD_COMMANDS.validate_json(raw)
    except ValidationError as exc:
        raise MetadataError(f"Invalid fold list: {exc}") from exc
    return [(line, end if end >= 0 else None) for line, end in pairs]
