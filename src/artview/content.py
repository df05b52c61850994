"""Content scanner: renderable regions and fold anchors in document text.

Recognises three constructs:

* fenced blocks whose kind keyword selects a toolchain::

      ```math,height=4
      \\int_0^1 x\\,dx
      ```

* image references followed by blank lines that reserve room for the
  picture (``![alt](path)``);
* section headers (``#`` .. ``######``), which become fold anchors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

from artview.utils import content_hash


class ContentKind(str, Enum):
    MATH = "math"
    PLOT = "plot"
    TYPESET = "typeset"
    FILE = "file"


_FENCE_KINDS: dict[str, ContentKind] = {
    "math": ContentKind.MATH,
    "gnuplot": ContentKind.PLOT,
    "plot": ContentKind.PLOT,
    "latex": ContentKind.TYPESET,
    "tex": ContentKind.TYPESET,
}

_FENCE_INFO_RE = re.compile(r"^(?P<name>[a-z]+)(?:,height=(?P<height>\d+))?")
_NEWLINE_RE = re.compile(r"\r\n?|\n")

# Fold anchors sort before nodes sharing their line.
FOLD_RANK = 0
NODE_RANK = 1


@dataclass(frozen=True)
class ContentRegion:
    """One renderable region found by a scan.

    ``height`` counts the screen rows the rendered image occupies, starting
    at ``start``.
    """

    kind: ContentKind
    content: str
    height: int
    start: int

    @property
    def end(self) -> int:
        return self.start + self.height - 1

    @property
    def line_range(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def identity(self) -> str:
        if self.kind is ContentKind.FILE:
            return content_hash(self.content)
        return content_hash(f"{self.kind.value}\0{self.content}")


@dataclass(frozen=True)
class HeaderMarker:
    line: int


ScanItem = Union[ContentRegion, HeaderMarker]


def _markdown() -> MarkdownIt:
    md = MarkdownIt("commonmark")
    # Image sources are file system paths; keep them as written.
    md.normalizeLink = lambda url: url  # type: ignore[method-assign]
    return md


_MD = _markdown()


def fence_kind(name: str) -> ContentKind | None:
    return _FENCE_KINDS.get(name)


def parse_fence_info(info: str) -> tuple[ContentKind | None, int | None]:
    """Split a fence info string such as ``math,height=4`` into kind and height."""
    match = _FENCE_INFO_RE.match(info.strip())
    if match is None:
        return None, None
    declared = match.group("height")
    return fence_kind(match.group("name")), int(declared) if declared else None


def scan(text: str) -> list[tuple[int, ScanItem]]:
    """Return regions and header markers ordered by line.

    Header markers come first when they share a line with a region. Empty
    fenced bodies, image references without padding lines and fences of
    unknown kind are skipped.
    """
    lines = _split_lines(text)
    keyed: list[tuple[int, int, ScanItem]] = []
    tokens = _MD.parse(text)

    for position, token in enumerate(tokens):
        if token.map is None:
            continue
        first, stop = token.map

        if token.type == "fence":
            region = _fence_region(token, first + 1, stop - first)
            if region is not None:
                keyed.append((region.start, NODE_RANK, region))
        elif token.type == "heading_open" and token.markup.startswith("#"):
            keyed.append((first + 1, FOLD_RANK, HeaderMarker(first + 1)))
        elif (
            token.type == "inline"
            and stop - first == 1
            and position > 0
            and tokens[position - 1].type == "paragraph_open"
        ):
            path = _lone_image(token)
            padding = _blank_run(lines, stop)
            if path and padding:
                start = stop + 1
                keyed.append(
                    (start, NODE_RANK, ContentRegion(ContentKind.FILE, path, padding, start))
                )

    keyed.sort(key=lambda item: (item[0], item[1]))
    return [(line, item) for line, _rank, item in keyed]


def _fence_region(token: Token, start: int, covered: int) -> ContentRegion | None:
    kind, height = parse_fence_info(token.info)
    if kind is None or not token.content.strip():
        return None
    if height is None:
        height = covered
    if height <= 0:
        return None
    return ContentRegion(kind, token.content, height, start)


def _lone_image(token: Token) -> str | None:
    """Return the source of an inline token made of one image and nothing else."""
    children = [
        child
        for child in token.children or []
        if not (child.type == "text" and not child.content.strip())
    ]
    if len(children) != 1 or children[0].type != "image":
        return None
    src = children[0].attrGet("src")
    return str(src).strip() if src else None


def _split_lines(text: str) -> list[str]:
    """Split on the same line breaks markdown-it counts in ``token.map``."""
    lines = _NEWLINE_RE.split(text)
    if lines and not lines[-1]:
        lines.pop()
    return lines


def _blank_run(lines: list[str], index: int) -> int:
    count = 0
    while index + count < len(lines) and not lines[index + count].strip(" \t"):
        count += 1
    return count
