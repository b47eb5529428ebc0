from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path


def _absolute(path: Path | str) -> Path:
    return Path(os.path.abspath(Path(path).expanduser()))


class LinkStatus(enum.Enum):
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"
    BACKED_UP_AND_LINKED = "backed_up_and_linked"
    SKIPPED_BY_USER = "skipped_by_user"
    FAILED = "failed"


class ErrorKind(enum.Enum):
    DIRECTORY_CREATION_ERROR = "directory-creation-error"
    LINK_ERROR = "link-error"
    PERMISSION_DENIED = "permission-denied"
    BACKUP_DIR_CREATION_ERROR = "backup-dir-creation-error"
    BACKUP_MOVE_ERROR = "backup-move-error"
    LINK_ERROR_AFTER_BACKUP = "link-error-after-backup"
    SOURCE_MISSING = "source-missing"

    @property
    def is_severe(self) -> bool:
        """True when the original content has been moved but nothing links to it."""
        return self is ErrorKind.LINK_ERROR_AFTER_BACKUP


class DestState(enum.Enum):
    """What currently sits at a destination path."""

    MISSING = "missing"
    LINKED = "linked"  # symlink pointing at the intended source
    OCCUPIED = "occupied"  # anything else: file, directory, foreign symlink


@dataclass(frozen=True)
class LinkRequest:
    """A (source, destination) pair. Both paths are stored absolute."""

    source: Path
    dest: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", _absolute(self.source))
        object.__setattr__(self, "dest", _absolute(self.dest))


@dataclass
class LinkOutcome:
    """Result of processing one LinkRequest."""

    request: LinkRequest
    status: LinkStatus
    error: ErrorKind | None = None
    detail: str = ""
    backup_path: Path | None = None  # where the displaced original now lives

    @property
    def failed(self) -> bool:
        return self.status is LinkStatus.FAILED

    @property
    def severe(self) -> bool:
        return self.error is not None and self.error.is_severe

    @property
    def label(self) -> str:
        """e.g. 'linked' or 'failed (permission-denied)'"""
        if self.error is not None:
            return f"{self.status.value} ({self.error.value})"
        return self.status.value


@dataclass
class ApplyReport:
    """All outcomes of one run, in request order, plus the run's backup directory."""

    outcomes: list[LinkOutcome] = field(default_factory=list)
    backup_dir: Path | None = None

    @property
    def failed(self) -> list[LinkOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def severe(self) -> list[LinkOutcome]:
        return [o for o in self.outcomes if o.severe]

    @property
    def ok(self) -> bool:
        return not self.failed

    def counts(self) -> dict[LinkStatus, int]:
        counts: dict[LinkStatus, int] = {}
        for outcome in self.outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        return counts

    @property
    def summary(self) -> str:
        """e.g. '2 linked, 1 already_linked, 1 failed'"""
        return ", ".join(
            f"{n} {status.value}" for status, n in self.counts().items()
        )
