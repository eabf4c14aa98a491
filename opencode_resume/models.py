from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from opencode_resume.formatting import display_width
from opencode_resume.fuzzy import filter_sessions


DEFAULT_SESSION_TITLE = "general"


@dataclass(frozen=True)
class SessionSummary:
    """
    One opencode session as the picker sees it.

    Timestamps are epoch milliseconds, as the service reports them.
    """

    session_id: str
    title: str
    updated_at_ms: int
    created_at_ms: int
    directory: str
    is_interactive: bool = True

    # Best-effort preview (filled in after the list is known).
    last_user_message: Optional[str] = None

    def with_preview(self, text: Optional[str]) -> "SessionSummary":
        return replace(self, last_user_message=text)


@dataclass(frozen=True)
class ExistingSession:
    session_id: str


@dataclass(frozen=True)
class NewSession:
    title: str


PickerResult = Union[ExistingSession, NewSession]


def new_session_title(text: str) -> str:
    return text or DEFAULT_SESSION_TITLE


@dataclass
class PickerState:
    all_sessions: List[SessionSummary] = field(default_factory=list)
    query: str = ""
    selected_index: int = 0
    # Height of the last frame written, erased before the next one.
    lines_drawn: int = 0

    @property
    def filtered(self) -> List[SessionSummary]:
        return filter_sessions(self.all_sessions, self.query)

    @property
    def max_title_width(self) -> int:
        return max((display_width(s.title) for s in self.all_sessions), default=0)
