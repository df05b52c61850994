"""Line-ordered index of folds and node placements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Union

from artview.content import FOLD_RANK, NODE_RANK
from artview.node_view import HIDDEN, NodeView, range_height


@dataclass
class FoldEntry:
    """A fold anchored at a header line; ``end`` is ``None`` while open."""

    line: int
    end: int | None = None

    rank = FOLD_RANK

    @property
    def folded(self) -> bool:
        return self.end is not None

    @property
    def span(self) -> tuple[int, int]:
        if self.end is None:
            return (self.line, self.line)
        return (self.line, max(self.end, self.line))


@dataclass
class NodeEntry:
    """One placement of a node; the same node may be placed several times."""

    line: int
    end: int
    node_id: str
    view: NodeView = HIDDEN

    rank = NODE_RANK

    @property
    def span(self) -> tuple[int, int]:
        return (self.line, self.end)

    @property
    def height(self) -> int:
        return range_height(self.span)


IndexEntry = Union[FoldEntry, NodeEntry]


class OrderedIndex:
    """Folds and node placements sorted by line, folds first on a tie."""

    def __init__(self, entries: Iterable[IndexEntry] = ()) -> None:
        self._entries: list[IndexEntry] = sorted(
            entries, key=lambda entry: (entry.line, entry.rank)
        )

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def folds(self) -> list[FoldEntry]:
        return [entry for entry in self._entries if isinstance(entry, FoldEntry)]

    def placements(self) -> list[NodeEntry]:
        return [entry for entry in self._entries if isinstance(entry, NodeEntry)]

    def fold_lines(self) -> list[int]:
        return [fold.line for fold in self.folds()]

    def hide_all(self) -> None:
        self.hide_where(lambda _entry: True)

    def hide_where(self, predicate: Callable[[NodeEntry], bool]) -> None:
        for entry in self.placements():
            if predicate(entry):
                entry.view = HIDDEN
