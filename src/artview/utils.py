"""Small helpers shared across the engine."""

from __future__ import annotations

import fcntl
import hashlib
import struct
import sys
import termios

from artview.config import DEFAULT_CHAR_HEIGHT

ID_LENGTH = 24


def content_hash(text: str) -> str:
    """Return the truncated SHA-256 hex digest used as node identity."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:ID_LENGTH]


def char_pixel_height(fd: int | None = None) -> int:
    """Measure the pixel height of one terminal cell.

    Falls back to ``DEFAULT_CHAR_HEIGHT`` when the terminal does not report
    its pixel size (``ws_ypixel`` of 0) or *fd* is not a terminal.
    """
    if fd is None:
        try:
            fd = sys.stdout.fileno()
        except (AttributeError, ValueError, OSError):
            return DEFAULT_CHAR_HEIGHT
    try:
        packed = fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\x00" * 8)
    except OSError:
        return DEFAULT_CHAR_HEIGHT
    rows, _cols, _xpixel, ypixel = struct.unpack("HHHH", packed)
    if ypixel > 2 and rows > 0:
        return ypixel // rows
    return DEFAULT_CHAR_HEIGHT
