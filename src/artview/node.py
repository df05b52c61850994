"""Per-node render pipeline: artifact generation and the geometry cache.

A node moves through ``Empty -> Running -> Ready | Failed``. Two kinds of
background work exist: generating the artifact (from ``Empty``) and
rendering the artifact at one geometry (from ``Ready``). Both go through the
single ``Running`` state, so a node never has more than one task in flight.

The state lock is held only to read or swap the state and to publish a
result; the blocking work itself always runs unlocked on the spawned task.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Union

from artview.content import ContentKind
from artview.errors import ArtError
from artview.node_view import GeometryKey

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Generation state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Running:
    pass


@dataclass(frozen=True)
class Ready:
    artifact: Any


@dataclass(frozen=True)
class Failed:
    error: ArtError


GenerationState = Union[Empty, Running, Ready, Failed]

EMPTY = Empty()
RUNNING = Running()


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------

Generate = Callable[[ContentKind, str, str], Any]
Render = Callable[[Any, GeometryKey], bytes]
Spawn = Callable[[Callable[[], None]], None]


def spawn_thread(work: Callable[[], None]) -> None:
    threading.Thread(target=work, name="artview-render", daemon=True).start()


@dataclass
class RenderHooks:
    """Collaborators of the render pipeline.

    ``generate(kind, content, identity)`` produces an artifact,
    ``render(artifact, key)`` encodes it at one geometry and ``spawn(work)``
    runs *work* in the background.
    """

    generate: Generate
    render: Render
    spawn: Spawn = spawn_thread


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class Node:
    """A renderable unit bound to one content identity."""

    def __init__(
        self,
        identity: str,
        line_range: tuple[int, int],
        kind: ContentKind,
        content: str,
        hooks: RenderHooks,
    ) -> None:
        self.id = identity
        self.range = line_range
        self.kind = kind
        self.content = content
        self._hooks = hooks
        self._lock = threading.Lock()
        self._state: GenerationState = EMPTY
        self._cache: dict[GeometryKey, bytes] = {}

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, kind={self.kind.value}, range={self.range})"

    @property
    def state(self) -> GenerationState:
        with self._lock:
            return self._state

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def cached(self, key: GeometryKey) -> bytes | None:
        with self._lock:
            return self._cache.get(key)

    def start(self) -> None:
        """Begin artifact generation unless some work already happened."""
        with self._lock:
            if not isinstance(self._state, Empty):
                return
            self._state = RUNNING
        self._hooks.spawn(self._generate)

    def request(self, key: GeometryKey) -> bytes | None:
        """Return the blob for *key*, or ``None`` while it is being produced.

        A stored failure is raised exactly once; the node then returns to
        ``Empty`` so the following request retries from scratch.
        """
        with self._lock:
            blob = self._cache.get(key)
            if blob is not None:
                return blob

            state = self._state
            if isinstance(state, Running):
                return None
            if isinstance(state, Failed):
                self._state = EMPTY
                raise state.error
            self._state = RUNNING

        if isinstance(state, Ready):
            artifact = state.artifact
            self._hooks.spawn(lambda: self._render(artifact, key))
        else:
            self._hooks.spawn(self._generate)
        return None

    # -- background work ---------------------------------------------------

    def _generate(self) -> None:
        try:
            artifact = self._hooks.generate(self.kind, self.content, self.id)
        except Exception as exc:
            self._publish(Failed(_as_art_error(exc, self)))
            return
        logger.debug("Generated artifact for %r", self)
        self._publish(Ready(artifact))

    def _render(self, artifact: Any, key: GeometryKey) -> None:
        try:
            blob = self._hooks.render(artifact, key)
        except Exception as exc:
            self._publish(Failed(_as_art_error(exc, self)))
            return
        with self._lock:
            self._cache.setdefault(key, blob)
            self._state = Ready(artifact)

    def _publish(self, state: GenerationState) -> None:
        with self._lock:
            self._state = state


def _as_art_error(exc: Exception, node: Node) -> ArtError:
    if isinstance(exc, ArtError):
        logger.info("Rendering %r failed: %s", node, exc)
        return exc
    logger.exception("Unexpected error while rendering %r", node)
    return ArtError(f"{type(exc).__name__}: {exc}")
