"""Terminal graphics protocols: capability detection and blob encoding."""

from __future__ import annotations

import base64
import os
from typing import Literal, Mapping

ImageProtocol = Literal["kitty", "iterm2"] | None

_KITTY_CHUNK_SIZE = 4096


def detect_image_protocol(env: Mapping[str, str] | None = None) -> ImageProtocol:
    """Guess the inline image protocol spoken by the hosting terminal."""
    if env is None:
        env = os.environ
    term_program = env.get("TERM_PROGRAM", "").lower()
    term = env.get("TERM", "").lower()

    if env.get("KITTY_WINDOW_ID") or term_program == "kitty" or "kitty" in term:
        return "kitty"

    if (
        term_program == "ghostty"
        or "ghostty" in term
        or env.get("GHOSTTY_RESOURCES_DIR")
    ):
        return "kitty"

    if env.get("WEZTERM_PANE") or term_program == "wezterm":
        return "kitty"

    if env.get("ITERM_SESSION_ID") or term_program == "iterm.app":
        return "iterm2"

    return None


def _kitty_command(control: str, payload: str = "") -> str:
    return f"\x1b_G{control};{payload}\x1b\\"


def encode_kitty(base64_data: str, *, image_id: int | None = None) -> str:
    """Transmit-and-display a PNG at its native pixel size.

    Payloads above 4096 bytes are split into ``m=1`` continuation chunks.
    ``C=1`` keeps the cursor in place so the caller's saved position stays
    valid.
    """
    control = "a=T,f=100,q=2,C=1"
    if image_id:
        control += f",i={image_id}"

    chunks = [
        base64_data[offset : offset + _KITTY_CHUNK_SIZE]
        for offset in range(0, len(base64_data), _KITTY_CHUNK_SIZE)
    ] or [""]
    if len(chunks) == 1:
        return _kitty_command(control, chunks[0])

    head, *middle, tail = chunks
    parts = [_kitty_command(f"{control},m=1", head)]
    parts.extend(_kitty_command("m=1", chunk) for chunk in middle)
    parts.append(_kitty_command("m=0", tail))
    return "".join(parts)


def delete_all_kitty_images() -> str:
    return "\x1b_Ga=d,d=A\x1b\\"


def encode_iterm2(
    base64_data: str,
    *,
    width: str | None = None,
    height: str | None = None,
) -> str:
    """Inline-file escape of iTerm2; sizes use its units (``auto``, ``40px``)."""
    params = ["inline=1"]
    if width is not None:
        params.append(f"width={width}")
    if height is not None:
        params.append(f"height={height}")
    return f"\x1b]1337;File={';'.join(params)}:{base64_data}\x07"


def encode_png(png: bytes, protocol: ImageProtocol, *, height_px: int) -> bytes:
    """Wrap PNG bytes into the escape sequence for *protocol*.

    Raises :class:`ValueError` when no protocol is available.
    """
    data = base64.b64encode(png).decode("ascii")
    if protocol == "kitty":
        return encode_kitty(data).encode("ascii")
    if protocol == "iterm2":
        return encode_iterm2(data, width="auto", height=f"{height_px}px").encode("ascii")
    raise ValueError("No terminal image protocol available")
