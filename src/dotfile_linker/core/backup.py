from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from dotfile_linker.core.timestamps import backup_dir_name, parse_backup_dir_name

logger = logging.getLogger(__name__)

# Upper bound on same-second name retries before giving up.
_MAX_DIR_ATTEMPTS = 100


class PartialMoveError(OSError):
    """A move failed after part of the source was already copied."""


class BackupSession:
    """The single backup directory of one run, created on first use.

    Displaced destinations are moved into it flat, keeping their basename.
    A basename that is already taken gets a numeric suffix (``.zshrc.1``)
    so nothing already in the directory is ever overwritten.
    """

    def __init__(
        self,
        root: Path,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.root = Path(root)
        self._now = now
        self.backup_dir: Path | None = None
        self.created_at: datetime | None = None

    @property
    def exists(self) -> bool:
        return self.backup_dir is not None

    def ensure(self) -> Path:
        """Return the session directory, creating it if this is the first call.

        Raises OSError if the directory cannot be created; the session then
        stays unset so a later call may try again.
        """
        if self.backup_dir is not None:
            return self.backup_dir

        created_at = self._now()
        for attempt in range(_MAX_DIR_ATTEMPTS):
            candidate = self.root / backup_dir_name(created_at, attempt)
            try:
                candidate.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                continue
            self.backup_dir = candidate
            self.created_at = created_at
            logger.info("Backup directory created: %s", candidate)
            return candidate

        raise FileExistsError(
            f"No free backup directory name under {self.root} "
            f"after {_MAX_DIR_ATTEMPTS} attempts"
        )

    def store(self, path: Path) -> Path:
        """Move ``path`` into the session directory and return its new location."""
        backup_dir = self.ensure()
        target = backup_dir / _free_name(backup_dir, path.name)
        try:
            shutil.move(str(path), str(target))
        except OSError as e:
            # Across filesystems move is copy then delete
            if os.path.lexists(target):
                raise PartialMoveError(
                    f"{e}; partial copy left at {target}, {path} may be incomplete"
                ) from e
            raise
        logger.info("Backed up %s -> %s", path, target)
        return target


def _free_name(directory: Path, name: str) -> str:
    """First of name, name.1, name.2, ... not present in directory."""
    candidate = name
    n = 0
    while os.path.lexists(directory / candidate):
        n += 1
        candidate = f"{name}.{n}"
    return candidate


@dataclass
class BackupEntry:
    """A backup directory left behind by an earlier run."""

    path: Path
    created_at: datetime
    entry_count: int


def list_backups(root: Path) -> list[BackupEntry]:
    """Find backup directories directly under root, newest first."""
    if not root.is_dir():
        return []

    entries = []
    for child in root.iterdir():
        if not child.is_dir() or child.is_symlink():
            continue
        created_at = parse_backup_dir_name(child.name)
        if created_at is None:
            continue
        try:
            count = sum(1 for _ in child.iterdir())
        except OSError:
            count = 0
        entries.append(BackupEntry(path=child, created_at=created_at, entry_count=count))

    entries.sort(key=lambda e: (e.created_at, e.path.name), reverse=True)
    return entries
