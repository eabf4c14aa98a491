"""
Frame rendering for the session picker.

Everything here is pure: given the picker state and a terminal width it
returns the lines of one frame. The picker owns writing them and erasing the
previous frame.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from opencode_resume.formatting import (
    clamp,
    collapse_whitespace,
    display_width,
    format_relative_time,
    now_epoch_ms,
    pad_to_width,
    truncate_to_width,
)
from opencode_resume.models import PickerState, SessionSummary


DIM = "\x1b[2m"
CYAN = "\x1b[36m"
YELLOW = "\x1b[33m"
RESET = "\x1b[0m"
CURSOR_UP = "\x1b[1A"
ERASE_LINE = "\x1b[2K"

MAX_VISIBLE = 10
# Below this many free columns the preview is dropped entirely.
MIN_PREVIEW_WIDTH = 10
PREVIEW_MARGIN = 2

HELP_LINE = "↑↓ navigate | enter select | ^n new | esc quit"
SEARCH_PLACEHOLDER = " /   type to search"


def dim(s: str) -> str:
    return f"{DIM}{s}{RESET}"


def erase_sequence(count: int) -> str:
    """Escape codes that move up and clear `count` previously written lines."""
    return (CURSOR_UP + ERASE_LINE) * max(0, count)


def visible_window(selected: int, total: int, size: int = MAX_VISIBLE) -> Tuple[int, int]:
    """
    Slice [start, end) of the list to show, keeping `selected` centred
    where the list allows it.
    """
    visible = min(total, size)
    if visible <= 0:
        return 0, 0
    start = clamp(selected - visible // 2, 0, total - visible)
    return start, min(total, start + visible)


def format_session_row(
    session: SessionSummary,
    *,
    selected: bool,
    max_title_width: int,
    width: int,
    now_ms: int,
) -> str:
    cursor = ">" if selected else " "
    timestamp = format_relative_time(session.updated_at_ms, now_ms)
    # The title column gives way first so the row never wraps.
    title_width = min(max_title_width, max(1, width - display_width(cursor) - display_width(timestamp) - 5))
    title = pad_to_width(session.title, title_width)

    # Layout: "> title  timestamp  preview"
    fixed = display_width(cursor) + 1 + title_width + 2 + display_width(timestamp) + 2
    available = width - fixed - PREVIEW_MARGIN

    preview = ""
    if session.last_user_message and available > MIN_PREVIEW_WIDTH:
        preview = truncate_to_width(collapse_whitespace(session.last_user_message), available)

    if preview:
        return f"{cursor} {title}  {DIM}{timestamp}  {preview}{RESET}"
    plain = f"{cursor} {title}  {timestamp}"
    if display_width(plain) > width:
        return truncate_to_width(plain, width)
    return f"{cursor} {title}  {DIM}{timestamp}{RESET}"


def render_frame(state: PickerState, width: int, *, now_ms: Optional[int] = None) -> List[str]:
    if now_ms is None:
        now_ms = now_epoch_ms()

    filtered = state.filtered
    lines: List[str] = []

    if state.query:
        lines.append(truncate_to_width(f" /{state.query}", width))
    else:
        lines.append(dim(truncate_to_width(SEARCH_PLACEHOLDER, width)))
    lines.append(dim(truncate_to_width(HELP_LINE, width)))
    lines.append("")

    if not filtered:
        if state.query:
            message = truncate_to_width(f'  No matches. Press ^n or enter to create "{state.query}"', width)
            lines.append(f"{YELLOW}{message}{RESET}")
        else:
            lines.append(dim(truncate_to_width("  No sessions", width)))
        return lines

    max_title_width = state.max_title_width
    start, end = visible_window(state.selected_index, len(filtered))
    for i in range(start, end):
        is_selected = i == state.selected_index
        row = format_session_row(
            filtered[i],
            selected=is_selected,
            max_title_width=max_title_width,
            width=width,
            now_ms=now_ms,
        )
        lines.append(f"{CYAN}{row}{RESET}" if is_selected else row)

    if len(filtered) > MAX_VISIBLE:
        lines.append(dim(truncate_to_width(f"  … {len(filtered)} matches", width)))
    return lines
