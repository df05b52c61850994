"""External rasterisation toolchains and the on-disk artifact cache.

Every artifact is a high resolution PNG stored as ``<art_dir>/<id>.png``.
An artifact that already exists is reused without invoking any toolchain,
which also carries work over from earlier processes.

* math and LaTeX fragments: ``latex`` then ``dvipng``;
* plots: ``gnuplot`` with the ``pngcairo`` terminal;
* file references: ``.tex`` and ``.plt`` files go through the matching
  toolchain, anything else is handed to the image decoder as is.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from artview.content import ContentKind
from artview.errors import (
    ArtIOError,
    ArtNotFoundError,
    GenerationError,
    ToolchainMissingError,
)
from artview.utils import content_hash

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".png"

MATH_PREAMBLE = (
    "\\documentclass[20pt, preview]{standalone}\n"
    "\\usepackage{amsmath}\\usepackage{amsfonts}\n"
    "\\begin{document}\n"
    "$$\n"
)
MATH_POSTAMBLE = "$$\n\\end{document}\n"

TYPESET_PREAMBLE = (
    "\\documentclass[preview]{standalone}\n"
    "\\usepackage{amsmath}\\usepackage{amsfonts}\\usepackage{tikz}\n"
    "\\begin{document}\n"
)
TYPESET_POSTAMBLE = "\\end{document}\n"

PLOT_SIZE = (1600, 1000)

_GNUPLOT_LOCATION_RE = re.compile(r"\bline (\d+):\s*(.*)")


def parse_latex_error(output: str, line_offset: int = 0) -> GenerationError:
    """Recover the reason and location of a LaTeX failure from its stdout.

    LaTeX reports ``! <reason>`` followed by ``l.<line> <element>``.
    *line_offset* is subtracted so the line refers to the user's content
    rather than the generated document.
    """
    reason = ""
    element = ""
    line: int | None = None
    for row in output.splitlines():
        if row.startswith("! ") and "Emergency stop" not in row:
            reason = row[2:].strip()
        elif row.startswith("l."):
            number, _, rest = row[2:].partition(" ")
            if number.isdigit():
                line = max(int(number) - line_offset, 1)
            element = rest.strip()
    return GenerationError(reason or "LaTeX failed", element, line)


def parse_gnuplot_error(stderr: str, line_offset: int = 0) -> GenerationError:
    """Recover the reason and location from gnuplot's ``line N: msg`` output."""
    reason = ""
    line: int | None = None
    element = ""
    rows = [row for row in stderr.splitlines() if row.strip()]
    for index, row in enumerate(rows):
        match = _GNUPLOT_LOCATION_RE.search(row)
        if match is None:
            continue
        line = max(int(match.group(1)) - line_offset, 1)
        reason = match.group(2).strip()
        source = [r for r in rows[:index] if r.strip(" \t^")]
        if source:
            element = source[-1].strip()
    if not reason and rows:
        reason = rows[-1].strip()
    return GenerationError(reason or "gnuplot failed", element, line)


class Toolchain:
    """Produces artifacts for ``(kind, content)`` pairs."""

    def __init__(
        self,
        art_dir: Path,
        base_dir: Path,
        dpi: int = 600,
        zoom: float = 1.0,
    ) -> None:
        self.art_dir = Path(art_dir)
        self.base_dir = Path(base_dir)
        self.dpi = dpi
        self.zoom = zoom

    def ensure_art_dir(self) -> None:
        try:
            self.art_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArtIOError(f"Cannot create {self.art_dir}: {exc}") from exc

    def artifact_path(self, identity: str) -> Path:
        return self.art_dir / f"{identity}{ARTIFACT_SUFFIX}"

    def build(self, kind: ContentKind, content: str, identity: str) -> Path:
        """Return the path of the artifact, generating it when missing."""
        if kind is ContentKind.FILE:
            return self._build_file(content)

        path = self.artifact_path(identity)
        if path.exists():
            logger.debug("Reusing artifact %s", path.name)
            return path

        self.ensure_art_dir()
        if kind is ContentKind.MATH:
            self._latex(
                identity, MATH_PREAMBLE + content + MATH_POSTAMBLE, MATH_PREAMBLE.count("\n")
            )
        elif kind is ContentKind.TYPESET:
            self._latex(identity, *_typeset_document(content))
        elif kind is ContentKind.PLOT:
            self._gnuplot(identity, content, self.base_dir)
        return path

    # -- file references ---------------------------------------------------

    def _build_file(self, reference: str) -> Path:
        path = Path(reference).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        if not path.exists():
            raise ArtNotFoundError(path)

        suffix = path.suffix.lower()
        if suffix not in (".tex", ".plt"):
            return path

        source = _read_text(path)
        kind = ContentKind.TYPESET if suffix == ".tex" else ContentKind.PLOT
        identity = content_hash(f"{kind.value}\0{source}")
        artifact = self.artifact_path(identity)
        if artifact.exists():
            return artifact

        self.ensure_art_dir()
        if kind is ContentKind.TYPESET:
            self._latex(identity, *_typeset_document(source))
        else:
            self._gnuplot(identity, source, path.parent)
        return artifact

    # -- latex -------------------------------------------------------------

    def _latex(self, identity: str, document: str, line_offset: int) -> None:
        tex_path = self.art_dir / f"{identity}.tex"
        dvi_path = tex_path.with_suffix(".dvi")
        _write_text(tex_path, document)

        if not dvi_path.exists():
            result = _run(
                ["latex", "-interaction=nonstopmode", "-halt-on-error", tex_path.name],
                cwd=self.art_dir,
            )
            if result.returncode != 0:
                if not result.stdout.strip():
                    raise GenerationError(result.stderr.strip() or "latex exited abnormally")
                dvi_path.unlink(missing_ok=True)
                raise parse_latex_error(result.stdout, line_offset)

        png_path = self.artifact_path(identity)
        result = _run(
            [
                "dvipng",
                "-D",
                str(round(self.dpi * self.zoom)),
                "-T",
                "tight",
                "-bg",
                "Transparent",
                "-o",
                png_path.name,
                dvi_path.name,
            ],
            cwd=self.art_dir,
        )
        if result.returncode != 0 or "error" in result.stderr.lower():
            png_path.unlink(missing_ok=True)
            raise GenerationError(result.stderr.strip() or "dvipng failed")

    # -- gnuplot -----------------------------------------------------------

    def _gnuplot(self, identity: str, source: str, cwd: Path) -> None:
        png_path = self.artifact_path(identity)
        width, height = PLOT_SIZE
        header = (
            f"set terminal pngcairo transparent enhanced size {width},{height}\n"
            f"set output '{png_path}'\n"
        )
        script_path = self.art_dir / f"{identity}.plt"
        _write_text(script_path, header + source)

        result = _run(["gnuplot", str(script_path)], cwd=cwd)
        if result.returncode != 0 or not png_path.exists():
            png_path.unlink(missing_ok=True)
            raise parse_gnuplot_error(result.stderr, header.count("\n"))


def _typeset_document(content: str) -> tuple[str, int]:
    """Return the LaTeX document for *content* and the lines added above it."""
    if "\\documentclass" in content:
        return content, 0
    return TYPESET_PREAMBLE + content + TYPESET_POSTAMBLE, TYPESET_PREAMBLE.count("\n")


def _run(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    binary = shutil.which(args[0])
    if binary is None:
        raise ToolchainMissingError(args[0])
    logger.debug("Running %s in %s", " ".join(args), cwd)
    try:
        return subprocess.run(
            [binary, *args[1:]],
            cwd=cwd,
            capture_output=True,
            text=True,
            errors="replace",
            stdin=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise ArtIOError(f"Failed to run {args[0]}: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ArtIOError(f"Cannot read {path}: {exc}") from exc


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ArtIOError(f"Cannot write {path}: {exc}") from exc
