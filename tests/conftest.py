"""Shared fixtures: a throwaway home directory with a dotfiles checkout."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest

FIXED_NOW = datetime(2026, 1, 30, 15, 0, 0)


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch) -> Path:
    """Point HOME at an empty temporary directory for every test."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo configure_logging() so each CLI invocation starts clean."""
    yield
    logger = logging.getLogger("dotfile_linker")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    for attr in ("_dotfile_linker_configured", "_dotfile_linker_log_path"):
        if hasattr(logger, attr):
            delattr(logger, attr)


@pytest.fixture
def dotfiles(home) -> Path:
    """~/dotfiles with a .zshrc, an nvim/ directory and a wezterm/ directory."""
    root = home / "dotfiles"
    root.mkdir()
    (root / ".zshrc").write_text("# managed zshrc\n")
    (root / "nvim").mkdir()
    (root / "nvim" / "init.lua").write_text("-- managed\n")
    (root / "wezterm").mkdir()
    (root / "wezterm" / "wezterm.lua").write_text("-- managed\n")
    return root


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW
