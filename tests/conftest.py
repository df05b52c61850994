from __future__ import annotations

import pytest

from artview.node import RenderHooks

from .fake_pipeline import DeferredSpawner, FakePipeline, make_hooks
from .virtual_terminal import VirtualTerminal


@pytest.fixture
def spawner() -> DeferredSpawner:
    return DeferredSpawner()


@pytest.fixture
def pipeline() -> FakePipeline:
    return FakePipeline()


@pytest.fixture
def hooks(pipeline: FakePipeline, spawner: DeferredSpawner) -> RenderHooks:
    return make_hooks(pipeline, spawner)


@pytest.fixture
def terminal() -> VirtualTerminal:
    return VirtualTerminal()
