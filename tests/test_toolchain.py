"""Tests for artview.toolchain."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from artview.content import ContentKind
from artview.errors import ArtIOError, ArtNotFoundError, GenerationError, ToolchainMissingError
from artview.toolchain import (
    MATH_PREAMBLE,
    Toolchain,
    parse_gnuplot_error,
    parse_latex_error,
)
from artview.utils import content_hash


@pytest.fixture
def toolchain(tmp_path: Path) -> Toolchain:
    return Toolchain(tmp_path / "arts", tmp_path / "docs")


@pytest.fixture
def no_binaries(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: None)


class FakeRun:
    """Records toolchain invocations and answers them from a script."""

    def __init__(self, results: dict[str, subprocess.CompletedProcess[str]]) -> None:
        self.results = results
        self.calls: list[list[str]] = []

    def __call__(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append(args)
        if args[0] == "dvipng":
            output = args[args.index("-o") + 1]
            (Path(cwd) / output).write_bytes(b"png")
        return self.results.get(args[0], subprocess.CompletedProcess(args, 0, "", ""))


# ---------------------------------------------------------------------------
# Error parsing
# ---------------------------------------------------------------------------


class TestParseLatexError:
    def test_reason_line_and_element(self) -> None:
        output = (
            "This is pdfTeX, Version 3.14\n"
            "! Undefined control sequence.\n"
            "l.5 \\frac{1}{2} + \\foo\n"
            "                       \n"
        )
        error = parse_latex_error(output, line_offset=4)
        assert error.reason == "Undefined control sequence."
        assert error.line == 1
        assert error.element == "\\frac{1}{2} + \\foo"
        assert str(error) == "Undefined control sequence. (line 1): \\frac{1}{2} + \\foo"

    def test_emergency_stop_does_not_replace_reason(self) -> None:
        output = "! Missing $ inserted.\nl.7 x^\n! Emergency stop.\n"
        error = parse_latex_error(output)
        assert error.reason == "Missing $ inserted."
        assert error.line == 7

    def test_line_never_below_one(self) -> None:
        error = parse_latex_error("! Oops.\nl.2 x\n", line_offset=4)
        assert error.line == 1

    def test_unrecognised_output(self) -> None:
        error = parse_latex_error("something else entirely\n")
        assert error.reason == "LaTeX failed"
        assert error.line is None
        assert error.element == ""


class TestParseGnuplotError:
    def test_location_and_element(self) -> None:
        stderr = (
            "\n"
            "plot sin(y)\n"
            "         ^\n"
            '"/tmp/arts/abc.plt" line 3: undefined variable: y\n'
            "\n"
        )
        error = parse_gnuplot_error(stderr, line_offset=2)
        assert error.reason == "undefined variable: y"
        assert error.line == 1
        assert error.element == "plot sin(y)"

    def test_without_location(self) -> None:
        error = parse_gnuplot_error("gnuplot: cannot open display\n")
        assert error.reason == "gnuplot: cannot open display"
        assert error.line is None

    def test_empty_stderr(self) -> None:
        assert parse_gnuplot_error("").reason == "gnuplot failed"


# ---------------------------------------------------------------------------
# Toolchain.build
# ---------------------------------------------------------------------------


class TestBuild:
    def test_existing_artifact_is_reused(self, toolchain: Toolchain, no_binaries) -> None:
        toolchain.ensure_art_dir()
        identity = content_hash("math\0x")
        existing = toolchain.artifact_path(identity)
        existing.write_bytes(b"png")

        assert toolchain.build(ContentKind.MATH, "x", identity) == existing

    def test_missing_latex(self, toolchain: Toolchain, no_binaries) -> None:
        with pytest.raises(ToolchainMissingError) as excinfo:
            toolchain.build(ContentKind.MATH, "x", "abc")
        assert excinfo.value.binary == "latex"

    def test_missing_gnuplot(self, toolchain: Toolchain, no_binaries) -> None:
        with pytest.raises(ToolchainMissingError, match="gnuplot"):
            toolchain.build(ContentKind.PLOT, "plot x", "abc")

    def test_math_runs_latex_then_dvipng(
        self, toolchain: Toolchain, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeRun({})
        monkeypatch.setattr("artview.toolchain._run", fake)
        toolchain.zoom = 2.0

        path = toolchain.build(ContentKind.MATH, "x^2", "abc")

        assert path == toolchain.art_dir / "abc.png"
        assert path.exists()
        assert [call[0] for call in fake.calls] == ["latex", "dvipng"]
        assert fake.calls[1][fake.calls[1].index("-D") + 1] == "1200"
        document = (toolchain.art_dir / "abc.tex").read_text(encoding="utf-8")
        assert document.startswith(MATH_PREAMBLE + "x^2")

    def test_latex_error_points_into_user_content(
        self, toolchain: Toolchain, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        failed = subprocess.CompletedProcess(
            ["latex"], 1, "! Undefined control sequence.\nl.5 \\foo\n", ""
        )
        monkeypatch.setattr("artview.toolchain._run", FakeRun({"latex": failed}))

        with pytest.raises(GenerationError) as excinfo:
            toolchain.build(ContentKind.MATH, "\\foo", "abc")

        assert excinfo.value.line == 1
        assert excinfo.value.element == "\\foo"
        assert not toolchain.artifact_path("abc").exists()

    def test_typeset_keeps_full_documents(
        self, toolchain: Toolchain, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("artview.toolchain._run", FakeRun({}))
        source = "\\documentclass{article}\n\\begin{document}hi\\end{document}\n"

        toolchain.build(ContentKind.TYPESET, source, "doc")

        assert (toolchain.art_dir / "doc.tex").read_text(encoding="utf-8") == source

    @pytest.mark.parametrize(
        ("source", "reported", "expected"),
        [
            ("\\documentclass{article}\n\\begin{document}\n\\badmacro\n", 3, 3),
            ("hello\n\\badmacro\n", 5, 2),
        ],
    )
    def test_typeset_error_line(
        self,
        toolchain: Toolchain,
        monkeypatch: pytest.MonkeyPatch,
        source: str,
        reported: int,
        expected: int,
    ) -> None:
        failed = subprocess.CompletedProcess(
            ["latex"], 1, f"! Undefined control sequence.\nl.{reported} \\badmacro\n", ""
        )
        monkeypatch.setattr("artview.toolchain._run", FakeRun({"latex": failed}))

        with pytest.raises(GenerationError) as excinfo:
            toolchain.build(ContentKind.TYPESET, source, "doc")

        assert excinfo.value.line == expected

    def test_gnuplot_failure(self, toolchain: Toolchain, monkeypatch: pytest.MonkeyPatch) -> None:
        failed = subprocess.CompletedProcess(
            ["gnuplot"], 1, "", 'plot y\n     ^\n"x.plt" line 3: undefined variable: y\n'
        )
        monkeypatch.setattr("artview.toolchain._run", FakeRun({"gnuplot": failed}))

        with pytest.raises(GenerationError) as excinfo:
            toolchain.build(ContentKind.PLOT, "plot y", "abc")

        assert excinfo.value.line == 1
        assert excinfo.value.reason == "undefined variable: y"
        script = (toolchain.art_dir / "abc.plt").read_text(encoding="utf-8")
        assert script.startswith("set terminal pngcairo")
        assert script.endswith("plot y")


class TestBuildFile:
    def test_missing_file(self, toolchain: Toolchain) -> None:
        with pytest.raises(ArtNotFoundError) as excinfo:
            toolchain.build(ContentKind.FILE, "missing.png", "id")
        assert excinfo.value.path == toolchain.base_dir / "missing.png"

    def test_relative_image_resolved_against_base_dir(self, toolchain: Toolchain) -> None:
        toolchain.base_dir.mkdir(parents=True)
        image = toolchain.base_dir / "fig.png"
        image.write_bytes(b"png")
        assert toolchain.build(ContentKind.FILE, "fig.png", "id") == image

    def test_absolute_path(self, toolchain: Toolchain, tmp_path: Path) -> None:
        image = tmp_path / "abs.jpg"
        image.write_bytes(b"jpg")
        assert toolchain.build(ContentKind.FILE, str(image), "id") == image

    def test_plot_file_is_compiled(self, toolchain: Toolchain, no_binaries) -> None:
        toolchain.base_dir.mkdir(parents=True)
        (toolchain.base_dir / "wave.plt").write_text("plot sin(x)\n", encoding="utf-8")
        with pytest.raises(ToolchainMissingError, match="gnuplot"):
            toolchain.build(ContentKind.FILE, "wave.plt", "id")

    def test_compiled_file_artifact_is_reused(self, toolchain: Toolchain, no_binaries) -> None:
        toolchain.base_dir.mkdir(parents=True)
        (toolchain.base_dir / "note.tex").write_text("hello", encoding="utf-8")
        toolchain.ensure_art_dir()
        artifact = toolchain.artifact_path(content_hash("typeset\0hello"))
        artifact.write_bytes(b"png")

        assert toolchain.build(ContentKind.FILE, "note.tex", "id") == artifact

    def test_tex_file_error_line_is_the_file_line(
        self, toolchain: Toolchain, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        toolchain.base_dir.mkdir(parents=True)
        source = "\\documentclass{article}\n\\begin{document}\n\\badmacro\n\\end{document}\n"
        (toolchain.base_dir / "paper.tex").write_text(source, encoding="utf-8")
        failed = subprocess.CompletedProcess(
            ["latex"], 1, "! Undefined control sequence.\nl.3 \\badmacro\n", ""
        )
        monkeypatch.setattr("artview.toolchain._run", FakeRun({"latex": failed}))

        with pytest.raises(GenerationError) as excinfo:
            toolchain.build(ContentKind.FILE, "paper.tex", "id")

        assert excinfo.value.line == 3
        assert excinfo.value.element == "\\badmacro"


class TestArtDir:
    def test_created_on_demand(self, toolchain: Toolchain) -> None:
        toolchain.ensure_art_dir()
        assert toolchain.art_dir.is_dir()

    def test_unwritable_location(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(ArtIOError):
            Toolchain(blocker / "arts", tmp_path).ensure_art_dir()
