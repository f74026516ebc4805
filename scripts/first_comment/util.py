# ASCII-only. No ellipses.

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

from dateutil import parser as dtparser


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_rfc3339(s: str) -> datetime:
    """Parse an API timestamp like 2024-05-01T17:00:03Z into an aware UTC datetime.

    Naive values are assumed to be UTC.
    """
    dt = dtparser.isoparse(str(s or "").strip())
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    parts: List[str] = []
    if hours:
        parts.append("%dh" % hours)
    if minutes:
        parts.append("%dm" % minutes)
    if secs or not parts:
        parts.append("%ds" % secs)
    return " ".join(parts)


def load_json(p: Path) -> Any:
    return json.loads(p.read_text(encoding="utf-8"))


def save_json_atomic(p: Path, obj: Any, mode: int = 0o600) -> None:
    """Write JSON to p via a temp file in the same directory and os.replace.

    Readers never see a half-written file. The parent directory is created
    (mode 0700) when missing.
    """
    p.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".%s." % p.name, suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2, sort_keys=True)
            f.write("\n")
        os.chmod(tmp, mode)
        os.replace(tmp, p)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
