"""Reconciliation of scanned regions against the live node set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from artview.content import ContentRegion, HeaderMarker, ScanItem
from artview.index import FoldEntry, IndexEntry, NodeEntry, OrderedIndex
from artview.node import Node, RenderHooks

logger = logging.getLogger(__name__)


@dataclass
class Reconciliation:
    nodes: dict[str, Node]
    index: OrderedIndex
    fold_lines: list[int] = field(default_factory=list)
    changed: bool = False


def reconcile(
    items: list[tuple[int, ScanItem]],
    previous: dict[str, Node],
    hooks: RenderHooks,
) -> Reconciliation:
    """Map a scan onto nodes, reusing every node whose identity survived.

    *previous* is consumed: claimed nodes are popped from it and whatever
    remains afterwards is dropped. A node dropped while its background task
    is still running simply lets that task finish into the orphaned node.
    """
    nodes: dict[str, Node] = {}
    entries: list[IndexEntry] = []
    fold_lines: list[int] = []
    changed = False

    for line, item in items:
        if isinstance(item, HeaderMarker):
            entries.append(FoldEntry(line))
            fold_lines.append(line)
            continue

        region: ContentRegion = item
        identity = region.identity
        entries.append(NodeEntry(region.start, region.end, identity))

        if identity in nodes:
            continue

        node = previous.pop(identity, None)
        if node is not None:
            if node.range != region.line_range:
                node.range = region.line_range
                changed = True
        else:
            node = Node(identity, region.line_range, region.kind, region.content, hooks)
            node.start()
            logger.debug("Created %r", node)
            changed = True
        nodes[identity] = node

    if previous:
        logger.debug("Dropping %d nodes", len(previous))
        changed = True
        previous.clear()

    return Reconciliation(nodes, OrderedIndex(entries), fold_lines, changed)


class NodeRegistry:
    """Owns the current node set and ordered index."""

    def __init__(self, hooks: RenderHooks) -> None:
        self.hooks = hooks
        self.nodes: dict[str, Node] = {}
        self.index = OrderedIndex()

    def update(self, items: list[tuple[int, ScanItem]]) -> Reconciliation:
        previous, self.nodes = self.nodes, {}
        result = reconcile(items, previous, self.hooks)
        self.nodes = result.nodes
        self.index = result.index
        return result

    def get(self, identity: str) -> Node | None:
        return self.nodes.get(identity)
