"""Engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from artview.terminal_image import ImageProtocol

DEFAULT_ART_DIR = "/tmp/nvim_arts"
DEFAULT_CHAR_HEIGHT = 28


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Config:
    """Engine configuration.

    ``protocol`` of ``None`` means the image protocol is detected from the
    environment. ``char_height`` of ``None`` means the cell pixel height is
    taken from the host metadata, or measured from the controlling terminal.
    """

    art_dir: Path = field(default_factory=lambda: Path(DEFAULT_ART_DIR))
    base_dir: Path = field(default_factory=Path.cwd)
    dpi: int = 600
    zoom: float = 1.0
    protocol: ImageProtocol = None
    char_height: int | None = None
    log_path: str | None = None
    log_level: str = "info"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Config:
        """Build a config from ``ARTVIEW_*`` environment variables."""
        if env is None:
            env = os.environ
        config = cls()
        if env.get("ARTVIEW_ART_DIR"):
            config.art_dir = Path(env["ARTVIEW_ART_DIR"]).expanduser()
        if env.get("ARTVIEW_BASE_DIR"):
            config.base_dir = Path(env["ARTVIEW_BASE_DIR"]).expanduser()
        dpi = _env_int(env, "ARTVIEW_DPI")
        if dpi is not None:
            config.dpi = dpi
        protocol = env.get("ARTVIEW_PROTOCOL", "").lower()
        if protocol in ("kitty", "iterm2"):
            config.protocol = protocol  # type: ignore[assignment]
        elif protocol:
            raise ValueError(f"ARTVIEW_PROTOCOL must be kitty or iterm2, got {protocol!r}")
        config.char_height = _env_int(env, "ARTVIEW_CHAR_HEIGHT")
        config.log_path = env.get("ARTVIEW_LOG") or None
        if env.get("ARTVIEW_LOG_LEVEL"):
            config.log_level = env["ARTVIEW_LOG_LEVEL"].lower()
        return config
