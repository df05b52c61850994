"""Tests for artview.cli."""

from __future__ import annotations

import os
import shutil

import pytest

from artview.cli import main, preview
from artview.config import Config
from artview.engine import Engine
from artview.node import RenderHooks

from .fake_pipeline import FakePipeline
from .virtual_terminal import VirtualTerminal

DOCUMENT = "# Title\n```math\nx\n```\nafter\n"


def _run_inline(work) -> None:
    work()


@pytest.fixture
def screen(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "get_terminal_size", lambda fallback=(80, 24): os.terminal_size((80, 25)))


def _engine(tmp_path, pipeline: FakePipeline, terminal: VirtualTerminal) -> Engine:
    hooks = RenderHooks(generate=pipeline.generate, render=pipeline.render, spawn=_run_inline)
    config = Config(art_dir=tmp_path, base_dir=tmp_path, protocol="kitty", char_height=10)
    return Engine(config, terminal=terminal, hooks=hooks)


class TestPreview:
    def test_prints_window_and_draws(
        self, tmp_path, pipeline: FakePipeline, terminal: VirtualTerminal, screen
    ) -> None:
        engine = _engine(tmp_path, pipeline, terminal)

        assert preview(engine, DOCUMENT, line=1, timeout=5) == 0

        assert terminal.clears == 1
        assert b"# Title\n```math\nx\n```\nafter" in terminal.output
        assert terminal.rows_drawn == [1]

    def test_starting_line_shifts_rows(
        self, tmp_path, pipeline: FakePipeline, terminal: VirtualTerminal, screen
    ) -> None:
        engine = _engine(tmp_path, pipeline, terminal)

        assert preview(engine, DOCUMENT, line=2, timeout=5) == 0

        assert terminal.rows_drawn == [0]
        assert b"# Title" not in terminal.output

    def test_errors_go_to_stderr(
        self, tmp_path, pipeline: FakePipeline, terminal: VirtualTerminal, screen, capsys
    ) -> None:
        pipeline.fail_generation("x\n", "Missing $ inserted.")
        engine = _engine(tmp_path, pipeline, terminal)

        assert preview(engine, DOCUMENT, line=1, timeout=5) == 1

        assert "artview: line 2: Missing $ inserted." in capsys.readouterr().err
        assert terminal.placed == []


class TestMain:
    def test_missing_file(self, tmp_path, capsys, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARTVIEW_ART_DIR", str(tmp_path / "arts"))
        assert main(["preview", str(tmp_path / "absent.md")]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_requires_subcommand(self) -> None:
        with pytest.raises(SystemExit):
            main([])
