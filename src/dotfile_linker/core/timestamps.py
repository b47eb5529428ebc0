"""Timestamped names for backup directories."""

from __future__ import annotations

import re
from datetime import datetime

BACKUP_PREFIX = "dotfiles_backup_"
STAMP_FORMAT = "%Y-%m-%d_%H%M%S"

_NAME_RE = re.compile(
    rf"{re.escape(BACKUP_PREFIX)}(\d{{4}}-\d{{2}}-\d{{2}}_\d{{6}})(?:_(\d+))?"
)


def backup_dir_name(now: datetime, attempt: int = 0) -> str:
    """Build the backup directory name for a run started at ``now``.

    Format: ``dotfiles_backup_YYYY-MM-DD_HHMMSS`` in local time. A nonzero
    ``attempt`` appends ``_<attempt>``, used when two runs land in the same
    second.
    """
    name = BACKUP_PREFIX + now.strftime(STAMP_FORMAT)
    if attempt:
        name += f"_{attempt}"
    return name


def parse_backup_dir_name(name: str) -> datetime | None:
    """Recover the creation time encoded in a backup directory name.

    Returns None for names that were not produced by backup_dir_name().
    """
    m = _NAME_RE.fullmatch(name)
    if not m:
        return None
    try:
        return datetime.strptime(m.group(1), STAMP_FORMAT)
    except ValueError:
        return None


def format_local(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    return dt.strftime(fmt)
