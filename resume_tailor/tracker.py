"""Track submitted applications in a CSV log with file locking."""
from __future__ import annotations

import csv
import fcntl
import io
from datetime import datetime, timezone
from pathlib import Path

from resume_tailor.log import get_logger
from resume_tailor.models import JobRecord

log = get_logger(__name__)

HEADERS: list[str] = [
    "Company Name", "Application Status", "Role", "Salary",
    "Date Submitted", "Link to Job Req", "Rejection Reason",
]
# JSON keys used by /api/csv, in column order.
ROW_KEYS: list[str] = ["company", "status", "role", "salary", "date", "link", "rejection"]


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def csv_escape(value: object) -> str:
    """Quote a single field if it holds a comma, quote or line break."""
    text = str(value)
    if not text:
        return ""
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\r\n").writerow([text])
    return buf.getvalue()[:-2]


def parse_csv_line(line: str) -> list[str]:
    return next(csv.reader([line]), [])


def ensure_tracker(csv_path: Path) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    if not csv_path.exists():
        with open(csv_path, "w", newline="", encoding="utf-8") as f:
            _lock(f)
            f.write(",".join(HEADERS) + "\n")
            _unlock(f)
        log.info("Created application tracker → %s", csv_path.name)


def append_application(job: JobRecord, csv_path: Path) -> None:
    ensure_tracker(csv_path)
    row = [
        job.company or job.slug,
        "Applied",
        job.title,
        "0",
        datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        job.link,
        "",
    ]
    with open(csv_path, "a", newline="", encoding="utf-8") as f:
        _lock(f)
        f.write(",".join(csv_escape(v) for v in row) + "\n")
        _unlock(f)
    log.info("[%s] Appended to %s", job.job_id, csv_path.name)


def read_applications(csv_path: Path) -> list[dict[str, str]]:
    """Rows after the header, keyed by ROW_KEYS; missing columns are blank."""
    if not csv_path.exists():
        return []
    try:
        with open(csv_path, "r", newline="", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            rows = list(csv.reader(f))
            _unlock(f)
    except (OSError, csv.Error) as exc:
        log.warning("Could not read %s: %s", csv_path.name, exc)
        return []
    out: list[dict[str, str]] = []
    for cols in rows[1:]:
        if not any(c.strip() for c in cols):
            continue
        out.append({key: (cols[i] if i < len(cols) else "") for i, key in enumerate(ROW_KEYS)})
    return out
