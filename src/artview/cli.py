"""Command line entry point: preview a document window in the terminal."""

from __future__ import annotations

import argparse
import json
import shutil
import sys
import time
from pathlib import Path

from artview.config import Config
from artview.engine import Engine
from artview.log import configure_logging
from artview.terminal import ProcessTerminal
from artview.wire import Envelope

POLL_INTERVAL = 0.05


def _fail(envelope: Envelope) -> int:
    print(f"artview: {envelope.error}", file=sys.stderr)
    return 1


def preview(engine: Engine, text: str, line: int, timeout: float) -> int:
    """Print the text window starting at *line* and draw its images over it."""
    size = shutil.get_terminal_size((80, 24))
    rows = max(size.lines - 1, 1)
    lines = text.split("\n")
    start = min(max(line, 1), max(len(lines), 1))
    end = min(len(lines), start + rows - 1)

    envelope = engine.update_content(text)
    if not envelope.ok:
        return _fail(envelope)
    envelope = engine.update_metadata(
        json.dumps({"start": start, "end": end, "width": size.columns, "height": rows})
    )
    if not envelope.ok:
        return _fail(envelope)

    window = "\n".join(row[: size.columns] for row in lines[start - 1 : end])
    engine.terminal.clear_screen()
    engine.terminal.write(window.encode("utf-8"))

    deadline = time.monotonic() + timeout
    errors: list[str] = []
    while True:
        envelope = engine.draw()
        if not envelope.ok:
            return _fail(envelope)
        errors.extend(envelope.value["errors"])
        if not envelope.value["pending"]:
            break
        if time.monotonic() > deadline:
            errors.append(f"timed out after {timeout:.0f}s")
            break
        time.sleep(POLL_INTERVAL)

    engine.terminal.write(f"\x1b[{rows + 1};1H".encode("ascii"))
    for error in errors:
        print(f"artview: {error}", file=sys.stderr)
    return 1 if errors else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="artview",
        description="Render math, plots and images of a markdown document inline in the terminal",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    preview_parser = subparsers.add_parser("preview", help="Show one window of a document")
    preview_parser.add_argument("file", help="Markdown document")
    preview_parser.add_argument("--line", type=int, default=1, help="First line shown (default: 1)")
    preview_parser.add_argument("--protocol", choices=["kitty", "iterm2"], default=None)
    preview_parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for rendering")
    preview_parser.add_argument("--log-file", default=None)
    preview_parser.add_argument("--log-level", default=None, choices=["debug", "info", "warning", "error"])
    args = parser.parse_args(argv)

    config = Config.from_env()
    path = Path(args.file).expanduser()
    config.base_dir = path.resolve().parent
    if args.protocol:
        config.protocol = args.protocol
    if args.log_file:
        config.log_path = args.log_file
    if args.log_level:
        config.log_level = args.log_level
    configure_logging(config.log_path, config.log_level)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"artview: cannot read {path}: {exc}", file=sys.stderr)
        return 1

    engine = Engine(config, terminal=ProcessTerminal())
    return preview(engine, text, args.line, args.timeout)


if __name__ == "__main__":
    sys.exit(main())
