from __future__ import annotations

import orjson

from dotfile_linker.core.models import ApplyReport, LinkOutcome


def outcome_to_dict(outcome: LinkOutcome) -> dict:
    return {
        "source": str(outcome.request.source),
        "dest": str(outcome.request.dest),
        "status": outcome.status.value,
        "error": outcome.error.value if outcome.error else None,
        "severe": outcome.severe,
        "detail": outcome.detail,
        "backup_path": str(outcome.backup_path) if outcome.backup_path else None,
    }


def report_to_json(report: ApplyReport) -> bytes:
    """Serialize a run for scripts: outcomes in request order plus the backup directory."""
    data = {
        "ok": report.ok,
        "backup_dir": str(report.backup_dir) if report.backup_dir else None,
        "counts": {status.value: n for status, n in report.counts().items()},
        "outcomes": [outcome_to_dict(o) for o in report.outcomes],
    }
    return orjson.dumps(data, option=orjson.OPT_INDENT_2)
