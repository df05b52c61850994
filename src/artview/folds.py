"""Fold state updates coming from the host."""

from __future__ import annotations

import logging

from artview.errors import FoldMismatchError
from artview.index import OrderedIndex

logger = logging.getLogger(__name__)


def apply_folds(index: OrderedIndex, commands: list[tuple[int, int | None]]) -> bool:
    """Apply ``(anchor, end)`` commands to the folds of *index*, in order.

    ``end`` of ``None`` opens the fold; a closed fold may not end above its
    anchor. Commands must match the index's folds one to one; otherwise
    :class:`FoldMismatchError` is raised before anything is modified.
    Returns whether any fold changed state.
    """
    folds = index.folds()
    if len(commands) != len(folds):
        raise FoldMismatchError(
            f"Expected {len(folds)} folds, got {len(commands)}"
        )
    for position, (fold, (line, end)) in enumerate(zip(folds, commands)):
        if fold.line != line:
            raise FoldMismatchError(
                f"Fold {position} is anchored at line {fold.line}, command targets line {line}"
            )
        if end is not None and end < line:
            raise FoldMismatchError(f"Fold {position} at line {line} ends above it at line {end}")

    changed = False
    for fold, (_line, end) in zip(folds, commands):
        if fold.end == end:
            continue
        changed = True
        anchor = fold.line
        # Placements inside a newly closed body vanish and everything below
        # the anchor moves on screen: all of them must be re-cropped from
        # Hidden when they come back into view.
        index.hide_where(lambda entry: entry.line > anchor)
        fold.end = end

    if changed:
        logger.debug("Fold state changed: %s", [fold.span for fold in folds if fold.folded])
    return changed
