"""Clone or update the dotfiles repository with git."""

from __future__ import annotations

import enum
import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


class RepoSyncError(RuntimeError):
    """git is unavailable or exited nonzero."""


class SyncAction(enum.Enum):
    CLONED = "cloned"
    UPDATED = "updated"


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_git(argv: Sequence[str], cwd: Path | None = None) -> CmdResult:
    """Run a git command, logging it and its output.

    Raises RepoSyncError if git is missing or the command fails.
    """
    if shutil.which("git") is None:
        raise RepoSyncError("git is not installed or not on PATH")

    argv_list = ["git", *argv]
    logger.info("CMD %s", _fmt_argv(argv_list))

    p = subprocess.run(
        argv_list,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if p.returncode != 0:
        raise RepoSyncError(
            f"Command failed ({p.returncode}): {_fmt_argv(argv_list)}\n{p.stderr.strip()}"
        )

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def sync_repo(repo_url: str, dotfiles_dir: Path) -> SyncAction:
    """Clone repo_url into dotfiles_dir, or pull if the directory already exists."""
    dotfiles_dir = dotfiles_dir.expanduser()
    if dotfiles_dir.is_dir():
        logger.info("Dotfiles directory exists, pulling latest changes: %s", dotfiles_dir)
        run_git(["pull"], cwd=dotfiles_dir)
        return SyncAction.UPDATED

    logger.info("Cloning %s into %s", repo_url, dotfiles_dir)
    dotfiles_dir.parent.mkdir(parents=True, exist_ok=True)
    run_git(["clone", repo_url, str(dotfiles_dir)])
    return SyncAction.CLONED
