"""Viewport classification of a node and the redraw transition table.

Line ranges are inclusive on both ends: a node on ``(10, 14)`` is five rows
tall.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from artview.wire import Metadata


@dataclass(frozen=True)
class Hidden:
    pass


@dataclass(frozen=True)
class UpperBorder:
    """Node straddles the top edge; ``skip`` rows are scrolled off."""

    skip: int
    visible: int


@dataclass(frozen=True)
class LowerBorder:
    """Node straddles the bottom edge, starting at screen ``row``."""

    row: int
    visible: int


@dataclass(frozen=True)
class Visible:
    row: int
    height: int


NodeView = Union[Hidden, UpperBorder, LowerBorder, Visible]

HIDDEN = Hidden()


@dataclass(frozen=True)
class GeometryKey:
    """Requested output geometry of a node's image, in pixels.

    ``crop`` is ``(window_height, vertical_offset)`` applied after the image
    is scaled to ``height``.
    """

    height: int
    crop: tuple[int, int] | None = None


@dataclass(frozen=True)
class Placement:
    """Where a freshly rendered geometry goes on screen."""

    row: int
    key: GeometryKey


def range_height(line_range: tuple[int, int]) -> int:
    start, end = line_range
    return end - start + 1


def classify(line_range: tuple[int, int], metadata: Metadata, offset: int) -> NodeView:
    """Classify a node whose first row sits *offset* rows below the window top."""
    height = range_height(line_range)
    viewport_rows = metadata.height

    if offset <= -height:
        return HIDDEN
    if offset < 0:
        skip = -offset
        return UpperBorder(skip, min(height - skip, viewport_rows))

    distance = viewport_rows - offset
    if distance <= 0:
        return HIDDEN
    if distance < height:
        return LowerBorder(offset, distance)
    return Visible(offset, height)


def required_placement(
    old: NodeView,
    new: NodeView,
    height: int,
    char_height: int,
) -> Placement | None:
    """Decide whether moving from *old* to *new* needs fresh pixels.

    Growth into view is drawn; shrinking, standing still and leaving the
    window are not, since pixels already on screen scroll with the text.
    """
    full_px = height * char_height

    if isinstance(new, Visible):
        if isinstance(old, Visible):
            return None
        return Placement(new.row, GeometryKey(full_px))

    if isinstance(new, UpperBorder):
        grows = isinstance(old, Hidden) or (
            isinstance(old, UpperBorder) and new.visible > old.visible
        )
        if not grows:
            return None
        crop = (new.visible * char_height, new.skip * char_height)
        return Placement(0, GeometryKey(full_px, crop))

    if isinstance(new, LowerBorder):
        grows = isinstance(old, Hidden) or (
            isinstance(old, LowerBorder) and new.visible > old.visible
        )
        if not grows:
            return None
        crop = (new.visible * char_height, 0)
        return Placement(new.row, GeometryKey(full_px, crop))

    return None
