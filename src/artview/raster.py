"""Artifact decoding and geometry rendering with Pillow."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from artview.errors import DecodeError
from artview.node_view import GeometryKey
from artview.terminal_image import ImageProtocol, encode_png


@dataclass(frozen=True)
class Artifact:
    """A decoded artifact; ``image`` is never mutated after loading."""

    source: Path
    image: Image.Image

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def load_artifact(path: Path) -> Artifact:
    try:
        with Image.open(path) as img:
            img.load()
            image = img.convert("RGBA")
    except (OSError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot load image {path}: {exc}") from exc
    return Artifact(source=Path(path), image=image)


def scale_and_crop(image: Image.Image, key: GeometryKey) -> Image.Image:
    """Scale *image* to ``key.height`` pixels tall, then apply the crop window."""
    width, height = image.size
    target_height = max(key.height, 1)
    target_width = max(round(width * target_height / max(height, 1)), 1)
    scaled = image.resize((target_width, target_height), Image.Resampling.LANCZOS)

    if key.crop is None:
        return scaled
    window, offset = key.crop
    top = min(max(offset, 0), target_height - 1)
    bottom = min(top + max(window, 1), target_height)
    return scaled.crop((0, top, target_width, bottom))


def to_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class Rasterizer:
    """Turns an artifact into a protocol blob at a requested geometry."""

    def __init__(self, protocol: ImageProtocol) -> None:
        self.protocol = protocol

    def render(self, artifact: Artifact, key: GeometryKey) -> bytes:
        image = scale_and_crop(artifact.image, key)
        return encode_png(to_png(image), self.protocol, height_px=image.height)
