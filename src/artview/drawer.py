"""Fold-aware draw pass over the ordered index.

The pass tracks ``last_line`` together with ``top_offset``, the screen row
that line occupies. Moving to the next entry advances both by the line
distance, except across a closed fold, whose body collapses into the single
row of its header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from artview.errors import ArtError
from artview.index import FoldEntry, NodeEntry, OrderedIndex
from artview.node import Node
from artview.node_view import HIDDEN, classify, required_placement
from artview.terminal import Terminal
from artview.wire import Metadata

logger = logging.getLogger(__name__)


@dataclass
class DrawResult:
    pending: bool = False
    errors: list[str] = field(default_factory=list)
    drawn: int = 0


def _intersects(span: tuple[int, int], first: int, last: int) -> bool:
    start, end = span
    return start <= last and end >= first


def draw(
    index: OrderedIndex,
    nodes: dict[str, Node],
    metadata: Metadata,
    terminal: Terminal,
    char_height: int,
) -> DrawResult:
    """Run one draw pass and report whether another pass is needed."""
    result = DrawResult()
    first, last = metadata.file_range
    last_line = first
    top_offset = 0
    skip_until = 0

    for entry in index:
        if not _intersects(entry.span, first, last):
            if isinstance(entry, NodeEntry):
                entry.view = HIDDEN
            continue
        if entry.line <= skip_until:
            continue

        top_offset += entry.line - last_line
        last_line = entry.line

        if isinstance(entry, FoldEntry):
            if entry.end is not None:
                skip_until = entry.end
                last_line = entry.end
            continue

        _draw_node(entry, nodes, metadata, terminal, char_height, top_offset, result)

    return result


def _draw_node(
    entry: NodeEntry,
    nodes: dict[str, Node],
    metadata: Metadata,
    terminal: Terminal,
    char_height: int,
    top_offset: int,
    result: DrawResult,
) -> None:
    node = nodes.get(entry.node_id)
    if node is None:
        return

    view = classify(entry.span, metadata, top_offset)
    placement = required_placement(entry.view, view, entry.height, char_height)
    if placement is None:
        entry.view = view
        return

    try:
        blob = node.request(placement.key)
    except ArtError as exc:
        logger.warning("Node %s at line %d failed: %s", node.id, entry.line, exc)
        result.errors.append(f"line {entry.line}: {exc}")
        return

    if blob is None:
        result.pending = True
        return

    terminal.write_at(metadata.row + placement.row, metadata.col, blob)
    entry.view = view
    result.drawn += 1
