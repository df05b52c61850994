"""Engine context and host boundary operations.

One :class:`Engine` is created per process and every boundary operation is
called on it from a single control thread. Each operation takes one string
and returns an :class:`~artview.wire.Envelope`; errors never escape as
exceptions so the host can show the message and keep what is on screen.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from artview.config import Config
from artview.content import ContentKind, scan
from artview.drawer import draw
from artview.errors import ArtError, ArtIOError
from artview.folds import apply_folds
from artview.node import RenderHooks
from artview.raster import Artifact, Rasterizer, load_artifact
from artview.registry import NodeRegistry
from artview.terminal import ProcessTerminal, Terminal
from artview.terminal_image import ImageProtocol, delete_all_kitty_images, detect_image_protocol
from artview.toolchain import Toolchain
from artview.utils import char_pixel_height
from artview.wire import Envelope, Metadata, parse_fold_commands, parse_metadata

logger = logging.getLogger(__name__)

OPERATIONS = ("update_content", "update_metadata", "set_folds", "clear_all", "draw")


def boundary(method: Callable[[Engine, str], Any]) -> Callable[[Engine, str], Envelope]:
    """Wrap an engine operation into the success/error envelope."""

    @functools.wraps(method)
    def wrapper(self: Engine, arg: str = "") -> Envelope:
        try:
            value = method(self, arg)
        except ArtError as exc:
            logger.error("%s failed: %s", method.__name__, exc)
            return Envelope.failure(str(exc))
        return Envelope.success(value)

    return wrapper


def default_hooks(toolchain: Toolchain, protocol: ImageProtocol) -> RenderHooks:
    rasterizer = Rasterizer(protocol)

    def generate(kind: ContentKind, content: str, identity: str) -> Artifact:
        return load_artifact(toolchain.build(kind, content, identity))

    return RenderHooks(generate=generate, render=rasterizer.render)


class Engine:
    """Owns the node registry, viewport metadata and output terminal."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        terminal: Terminal | None = None,
        hooks: RenderHooks | None = None,
    ) -> None:
        self.config = config or Config()
        self.protocol: ImageProtocol = (
            self.config.protocol or detect_image_protocol() or "kitty"
        )
        self.terminal: Terminal = terminal or ProcessTerminal()

        if hooks is None:
            toolchain = Toolchain(
                self.config.art_dir,
                self.config.base_dir,
                dpi=self.config.dpi,
                zoom=self.config.zoom,
            )
            try:
                toolchain.ensure_art_dir()
            except ArtIOError as exc:
                logger.warning("%s", exc)
            hooks = default_hooks(toolchain, self.protocol)

        self.registry = NodeRegistry(hooks)
        self.metadata = Metadata()
        self._measured_char_height: int | None = None
        logger.info("Engine started (protocol=%s, art_dir=%s)", self.protocol, self.config.art_dir)

    @property
    def char_height(self) -> int:
        if self.metadata.char_height:
            return self.metadata.char_height
        if self.config.char_height:
            return self.config.char_height
        if self._measured_char_height is None:
            self._measured_char_height = char_pixel_height()
        return self._measured_char_height

    # -- boundary operations -----------------------------------------------

    @boundary
    def update_content(self, text: str) -> dict[str, Any]:
        """Rescan the document; report node changes and fold anchor lines."""
        result = self.registry.update(scan(text))
        logger.debug(
            "Content updated: %d nodes, changed=%s", len(result.nodes), result.changed
        )
        return {"changed": result.changed, "folds": result.fold_lines}

    @boundary
    def update_metadata(self, raw: str) -> None:
        metadata = parse_metadata(raw)
        previous = self.metadata
        self.metadata = metadata
        if (
            metadata.viewport != previous.viewport
            or metadata.char_height != previous.char_height
        ):
            self.registry.index.hide_all()

    @boundary
    def set_folds(self, raw: str) -> bool:
        return apply_folds(self.registry.index, parse_fold_commands(raw))

    @boundary
    def clear_all(self, _arg: str = "") -> None:
        self.registry.index.hide_all()
        if self.protocol == "kitty":
            self.terminal.write(delete_all_kitty_images().encode("ascii"))

    @boundary
    def draw(self, _arg: str = "") -> dict[str, Any]:
        """Run one draw pass; ``pending`` asks the host to call again later."""
        result = draw(
            self.registry.index,
            self.registry.nodes,
            self.metadata,
            self.terminal,
            self.char_height,
        )
        return {"pending": result.pending, "errors": result.errors}

    def dispatch(self, operation: str, arg: str = "") -> str:
        """Call a boundary operation by name and return the envelope as JSON."""
        if operation not in OPERATIONS:
            return Envelope.failure(f"Unknown operation: {operation}").model_dump_json()
        envelope: Envelope = getattr(self, operation)(arg)
        return envelope.model_dump_json()
