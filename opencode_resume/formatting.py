from __future__ import annotations

import datetime as _dt
import re
import time
import unicodedata
from typing import List, Optional


DAY_MS = 24 * 60 * 60 * 1000

_WHITESPACE_RE = re.compile(r"\s+")


def _char_width(ch: str) -> int:
    """
    Terminal column width of a single character.

    - Combining marks: width 0
    - East Asian Wide/Fullwidth: width 2
    - Everything else: width 1
    """
    if not ch:
        return 0
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def display_width(s: str) -> int:
    return sum(_char_width(ch) for ch in s)


def truncate_to_width(s: str, max_width: int, *, ellipsis: str = "…") -> str:
    if max_width <= 0:
        return ""
    if display_width(s) <= max_width:
        return s

    ell_w = display_width(ellipsis)
    if ell_w >= max_width:
        # Can't fit anything meaningful.
        return ellipsis[:1]

    out: List[str] = []
    used = 0
    for ch in s:
        w = _char_width(ch)
        if used + w > max_width - ell_w:
            break
        out.append(ch)
        used += w
    return "".join(out) + ellipsis


def pad_to_width(s: str, width: int, *, pad_char: str = " ") -> str:
    """
    Pad/truncate a string to exactly `width` terminal columns.

    Titles with CJK wide characters still line up in a monospace terminal
    because padding is computed from `display_width`, not `len`.
    """
    if width <= 0:
        return ""
    if not pad_char:
        pad_char = " "

    if display_width(s) > width:
        s = truncate_to_width(s, width)

    w = display_width(s)
    if w >= width:
        return s
    return s + (pad_char * (width - w))


def collapse_whitespace(s: str) -> str:
    """Fold newlines and runs of whitespace into single spaces."""
    return _WHITESPACE_RE.sub(" ", s or "").strip()


def now_epoch_ms() -> int:
    return int(time.time() * 1000)


def format_relative_time(ms: int, now_ms: Optional[int] = None) -> str:
    """
    Short "last touched" label for a session row.

    Buckets by whole elapsed days (not calendar days):
    - under a day: local time of day, 24h ("14:05")
    - one day: "yesterday"
    - under a week: "3d ago"
    - older: month and day ("Oct 7")
    """
    if now_ms is None:
        now_ms = now_epoch_ms()
    days = (now_ms - ms) // DAY_MS
    dt = _dt.datetime.fromtimestamp(ms / 1000, tz=_dt.timezone.utc).astimezone()
    if days <= 0:
        return dt.strftime("%H:%M")
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days}d ago"
    return f"{dt.strftime('%b')} {dt.day}"


def clamp(n: int, lo: int, hi: int) -> int:
    return lo if n < lo else hi if n > hi else n
