"""
Interactive session picker.

A small inline UI (no alternate screen): the frame is written below the
cursor and redrawn in place by erasing exactly the lines of the previous frame.
Keys are read one at a time in raw mode and applied to `PickerState` before
the next read.
"""

from __future__ import annotations

import enum
import shutil
import sys
from typing import Callable, List, NoReturn, Optional, Sequence, TextIO

from opencode_resume.formatting import clamp, now_epoch_ms
from opencode_resume.keys import KeyEvent, KeyKind, decode_key, read_key
from opencode_resume.models import (
    ExistingSession,
    NewSession,
    PickerResult,
    PickerState,
    SessionSummary,
    new_session_title,
)
from opencode_resume.render import erase_sequence, render_frame
from opencode_resume.service import SessionServiceClient
from opencode_resume.session_source import list_candidate_sessions


ReadKey = Callable[[], str]


class Mode(enum.Enum):
    LISTING = "listing"
    PROMPTING_TITLE = "prompting_title"


def _terminal_width() -> int:
    return shutil.get_terminal_size((80, 24)).columns or 80


class SessionPicker:
    def __init__(
        self,
        sessions: Sequence[SessionSummary],
        *,
        read_key: Optional[ReadKey] = None,
        out: Optional[TextIO] = None,
        width: Optional[Callable[[], int]] = None,
        now_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self.state = PickerState(all_sessions=list(sessions))
        self.mode = Mode.LISTING if self.state.all_sessions else Mode.PROMPTING_TITLE
        self._read_key = read_key or read_key_from_stdin
        self._out = out or sys.stdout
        self._width = width or _terminal_width
        self._now_ms = now_ms or now_epoch_ms
        self.title_buffer = ""

    # -- output -------------------------------------------------------------

    def _write(self, s: str) -> None:
        self._out.write(s)
        self._out.flush()

    def draw(self) -> List[str]:
        lines = render_frame(self.state, self._width(), now_ms=self._now_ms())
        self._write(erase_sequence(self.state.lines_drawn) + "\n".join(lines) + "\n")
        self.state.lines_drawn = len(lines)
        return lines

    def erase(self) -> None:
        if self.state.lines_drawn:
            self._write(erase_sequence(self.state.lines_drawn))
        self.state.lines_drawn = 0

    def _quit(self) -> NoReturn:
        self.erase()
        raise SystemExit(0)

    def _next_key(self) -> Optional[KeyEvent]:
        return decode_key(self._read_key())

    # -- listing ------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> Optional[PickerResult]:
        """
        Apply one key in listing mode. Returns a result when the picker is
        done; escape and Ctrl+C exit the process instead.
        """
        st = self.state
        kind = key.kind

        if kind is KeyKind.UP or kind is KeyKind.DOWN:
            n = len(st.filtered)
            if n > 0:
                delta = -1 if kind is KeyKind.UP else 1
                st.selected_index = clamp(st.selected_index + delta, 0, n - 1)
            self.draw()
            return None

        if kind is KeyKind.CREATE_NEW:
            self.erase()
            return NewSession(new_session_title(st.query))

        if kind is KeyKind.ENTER:
            filtered = st.filtered
            self.erase()
            if filtered and 0 <= st.selected_index < len(filtered):
                return ExistingSession(filtered[st.selected_index].session_id)
            return NewSession(new_session_title(st.query))

        if kind is KeyKind.ESCAPE or kind is KeyKind.INTERRUPT:
            self._quit()

        if kind is KeyKind.BACKSPACE:
            if st.query:
                st.query = st.query[:-1]
                st.selected_index = 0
            self.draw()
            return None

        if kind is KeyKind.CHAR:
            st.query += key.char
            st.selected_index = 0
            self.draw()
            return None

        return None

    def _run_listing(self) -> PickerResult:
        self.draw()
        while True:
            key = self._next_key()
            if key is None:
                continue
            result = self.handle_key(key)
            if result is not None:
                return result

    # -- first run ----------------------------------------------------------

    def handle_title_key(self, key: KeyEvent) -> Optional[PickerResult]:
        kind = key.kind
        if kind is KeyKind.ENTER:
            self._write("\n")
            return NewSession(new_session_title(self.title_buffer))
        if kind is KeyKind.BACKSPACE:
            if self.title_buffer:
                self.title_buffer = self.title_buffer[:-1]
                self._write("\b \b")
            return None
        if kind is KeyKind.INTERRUPT:
            raise SystemExit(0)
        if kind is KeyKind.CHAR:
            self.title_buffer += key.char
            self._write(key.char)
        return None

    def _run_title_prompt(self) -> PickerResult:
        self._write("No sessions in this directory.\n")
        self._write('Enter title for new session (or press enter for "general"):\n')
        self._write("> ")
        while True:
            key = self._next_key()
            if key is None:
                continue
            result = self.handle_title_key(key)
            if result is not None:
                return result

    def run(self) -> PickerResult:
        if self.mode is Mode.PROMPTING_TITLE:
            return self._run_title_prompt()
        return self._run_listing()


def read_key_from_stdin() -> str:
    return read_key(sys.stdin)


def show_picker(
    directory: str,
    *,
    client: SessionServiceClient,
    read_key: Optional[ReadKey] = None,
    out: Optional[TextIO] = None,
) -> PickerResult:
    """
    Let the user pick a session of `directory` or name a new one.

    The session list is fetched once up front; `ServiceUnavailable` from that
    fetch propagates to the caller.
    """
    sessions = list_candidate_sessions(client, directory)
    return SessionPicker(sessions, read_key=read_key, out=out).run()
