"""Write report artifacts to disk."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .models import as_utc

logger = logging.getLogger(__name__)

REPORTS_DIRNAME = "reports"
DEFAULT_PREFIX = "copilot-metrics"


def format_report_timestamp(when: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, ``:`` and ``.`` replaced by ``-``.

    e.g. 2026-02-10T12:30:45.123Z -> 2026-02-10T12-30-45-123Z
    """
    when = as_utc(when)
    iso = when.strftime("%Y-%m-%dT%H:%M:%S") + f".{when.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def report_filename(prefix: str, organization: str, when: datetime) -> str:
    return f"{prefix}-{organization}-{format_report_timestamp(when)}.json"


def default_reports_dir() -> Path:
    return Path.cwd() / REPORTS_DIRNAME


def persist_report(document: dict, organization: str, output_dir: str | Path | None = None,
                   prefix: str = DEFAULT_PREFIX, when: datetime | None = None) -> Path:
    """Write ``document`` as indented JSON and return the file path.

    The output directory is created if missing. OSError propagates.
    """
    directory = Path(output_dir) if output_dir else default_reports_dir()
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("Created reports directory %s", directory)

    when = when or datetime.now(timezone.utc)
    path = directory / report_filename(prefix, organization, when)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, default=str)
        f.write("\n")
    logger.info("Report written to %s", path)
    return path
