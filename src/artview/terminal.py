"""Output stream abstraction for cursor-positioned image writes.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` writing
to the process's stdout. Every positioned write (save cursor, move, payload,
restore cursor) happens under one process-wide lock so another writer can
never interleave with a half-written image.
"""

from __future__ import annotations

import sys
import threading
from typing import BinaryIO, Protocol

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_SAVE_CURSOR = b"\x1b[s"
_RESTORE_CURSOR = b"\x1b[u"
_MOVE_TO_FMT = "\x1b[{};{}H"
_CLEAR_SCREEN = b"\x1b[2J\x1b[H"

OUTPUT_LOCK = threading.Lock()


def positioned(row: int, col: int, payload: bytes) -> bytes:
    """Return *payload* wrapped in save / move-to / restore sequences.

    *row* and *col* are 0-based screen cells.
    """
    move = _MOVE_TO_FMT.format(row + 1, col + 1).encode("ascii")
    return _SAVE_CURSOR + move + payload + _RESTORE_CURSOR


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for the output side of a terminal."""

    def write(self, data: bytes) -> None: ...

    def write_at(self, row: int, col: int, payload: bytes) -> None: ...

    def clear_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by ``sys.stdout``'s binary buffer."""

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> BinaryIO:
        if self._stream is not None:
            return self._stream
        return sys.stdout.buffer

    def write(self, data: bytes) -> None:
        with OUTPUT_LOCK:
            self._raw_write(data)

    def write_at(self, row: int, col: int, payload: bytes) -> None:
        with OUTPUT_LOCK:
            self._raw_write(positioned(row, col, payload))

    def clear_screen(self) -> None:
        self.write(_CLEAR_SCREEN)

    def _raw_write(self, data: bytes) -> None:
        try:
            self.stream.write(data)
            self.stream.flush()
        except OSError:
            pass
