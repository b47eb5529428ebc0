from dotfile_linker.core.linker import LinkFailure, SymlinkManager, apply, inspect
from dotfile_linker.core.models import (
    ApplyReport,
    DestState,
    ErrorKind,
    LinkOutcome,
    LinkRequest,
    LinkStatus,
)

__all__ = [
    "ApplyReport",
    "DestState",
    "ErrorKind",
    "LinkFailure",
    "LinkOutcome",
    "LinkRequest",
    "LinkStatus",
    "SymlinkManager",
    "apply",
    "inspect",
]
