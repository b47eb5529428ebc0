from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from dotfile_linker.core.backup import BackupSession
from dotfile_linker.core.models import (
    ApplyReport,
    DestState,
    ErrorKind,
    LinkOutcome,
    LinkRequest,
    LinkStatus,
)

logger = logging.getLogger(__name__)

Confirm = Callable[[Path], bool]


class LinkFailure(Exception):
    """A request could not be completed. Caught per request by SymlinkManager."""

    def __init__(self, kind: ErrorKind, detail: str = "", backup_path: Path | None = None):
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail
        self.backup_path = backup_path


def link_target(path: Path) -> Path | None:
    """Absolute, normalised target of the symlink at path, or None if not a symlink."""
    try:
        raw = os.readlink(path)
    except OSError:
        return None
    if not os.path.isabs(raw):
        raw = os.path.join(os.path.dirname(path), raw)
    return Path(os.path.normpath(raw))


def inspect(request: LinkRequest) -> DestState:
    """Classify what sits at the request's destination. Never modifies the filesystem."""
    dest = request.dest
    if not os.path.lexists(dest):
        return DestState.MISSING
    if dest.is_symlink() and link_target(dest) == request.source:
        return DestState.LINKED
    return DestState.OCCUPIED


def can_displace(dest: Path) -> bool:
    """Whether dest and its parent directory are writable.

    Moving a symlink only needs the parent, so a symlink's own target is not
    checked.
    """
    if not os.access(dest.parent, os.W_OK):
        return False
    if dest.is_symlink():
        return True
    return os.access(dest, os.W_OK)


def _symlink(source: Path, dest: Path, kind: ErrorKind, backup_path: Path | None = None) -> None:
    try:
        os.symlink(source, dest, target_is_directory=source.is_dir())
    except OSError as e:
        raise LinkFailure(kind, str(e), backup_path=backup_path) from e


class SymlinkManager:
    """Points destinations at their sources, backing up whatever was there.

    Requests are processed strictly in order. Each ends in exactly one
    LinkOutcome; a failing request never stops the ones after it. All
    displaced destinations of one apply() call share a single backup
    directory, created the first time something actually has to be moved.
    """

    def __init__(
        self,
        backup_root: Path | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.backup_root = Path(backup_root) if backup_root else Path.home()
        self._now = now

    def apply(self, requests: Iterable[LinkRequest], confirm: Confirm) -> ApplyReport:
        session = BackupSession(self.backup_root, now=self._now)
        report = ApplyReport()

        for request in requests:
            try:
                outcome = self._link_one(request, confirm, session)
            except LinkFailure as e:
                if e.kind.is_severe:
                    logger.error(
                        "%s: link missing after backup, original is at %s (%s)",
                        request.dest, e.backup_path, e.detail,
                    )
                else:
                    logger.warning("%s: %s", request.dest, e)
                outcome = LinkOutcome(
                    request=request,
                    status=LinkStatus.FAILED,
                    error=e.kind,
                    detail=e.detail,
                    backup_path=e.backup_path,
                )
            report.outcomes.append(outcome)

        report.backup_dir = session.backup_dir
        return report

    def _link_one(
        self,
        request: LinkRequest,
        confirm: Confirm,
        session: BackupSession,
    ) -> LinkOutcome:
        source, dest = request.source, request.dest
        logger.info("Attempting to link: %s -> %s", source, dest)

        if not source.exists():
            raise LinkFailure(ErrorKind.SOURCE_MISSING, f"{source} does not exist")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LinkFailure(ErrorKind.DIRECTORY_CREATION_ERROR, str(e)) from e

        state = inspect(request)

        if state is DestState.LINKED:
            logger.info("Already linked correctly: %s", dest)
            return LinkOutcome(request=request, status=LinkStatus.ALREADY_LINKED)

        if state is DestState.MISSING:
            _symlink(source, dest, ErrorKind.LINK_ERROR)
            logger.info("Linked new file: %s", dest)
            return LinkOutcome(request=request, status=LinkStatus.LINKED)

        if not can_displace(dest):
            raise LinkFailure(
                ErrorKind.PERMISSION_DENIED,
                f"no write permission for {dest} or {dest.parent}",
            )

        if not confirm(dest):
            logger.info("User skipped linking: %s", dest)
            return LinkOutcome(request=request, status=LinkStatus.SKIPPED_BY_USER)

        try:
            session.ensure()
        except OSError as e:
            raise LinkFailure(ErrorKind.BACKUP_DIR_CREATION_ERROR, str(e)) from e

        try:
            backup_path = session.store(dest)
        except OSError as e:
            raise LinkFailure(ErrorKind.BACKUP_MOVE_ERROR, str(e)) from e

        _symlink(source, dest, ErrorKind.LINK_ERROR_AFTER_BACKUP, backup_path=backup_path)
        logger.info("Linked %s (original backed up to %s)", dest, backup_path)
        return LinkOutcome(
            request=request,
            status=LinkStatus.BACKED_UP_AND_LINKED,
            backup_path=backup_path,
        )


def apply(
    requests: Iterable[LinkRequest],
    confirm: Confirm,
    backup_root: Path | None = None,
    now: Callable[[], datetime] = datetime.now,
) -> ApplyReport:
    """Link every request in order. See SymlinkManager."""
    return SymlinkManager(backup_root=backup_root, now=now).apply(requests, confirm)
