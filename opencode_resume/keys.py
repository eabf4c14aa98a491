from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass
from typing import Dict, Optional, TextIO


class KeyKind(enum.Enum):
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    INTERRUPT = "interrupt"
    CREATE_NEW = "create_new"
    CHAR = "char"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""


UP = KeyEvent(KeyKind.UP)
DOWN = KeyEvent(KeyKind.DOWN)
ENTER = KeyEvent(KeyKind.ENTER)
BACKSPACE = KeyEvent(KeyKind.BACKSPACE)
ESCAPE = KeyEvent(KeyKind.ESCAPE)
INTERRUPT = KeyEvent(KeyKind.INTERRUPT)
CREATE_NEW = KeyEvent(KeyKind.CREATE_NEW)


def char(c: str) -> KeyEvent:
    return KeyEvent(KeyKind.CHAR, c)


_SEQUENCES: Dict[str, KeyEvent] = {
    "\x1b[A": UP,
    "\x1bOA": UP,  # application cursor mode
    "\x1b[B": DOWN,
    "\x1bOB": DOWN,
    "\r": ENTER,
    "\n": ENTER,
    "\x7f": BACKSPACE,
    "\b": BACKSPACE,
    "\x1b": ESCAPE,
    "\x03": INTERRUPT,  # Ctrl+C
    "\x0e": CREATE_NEW,  # Ctrl+N
}


def decode_key(raw: str) -> Optional[KeyEvent]:
    """
    Map one raw terminal read to a key event.

    Unknown escape sequences, other control characters and multi-character
    chunks (pastes) decode to None and are ignored by the picker.
    """
    if not raw:
        return None
    ev = _SEQUENCES.get(raw)
    if ev is not None:
        return ev
    if len(raw) == 1 and raw.isprintable():
        return char(raw)
    return None


def read_key(stream: Optional[TextIO] = None) -> str:
    """
    Read one keypress (or escape sequence) from a terminal in raw mode.

    The previous tty attributes are restored before returning, so output
    written between reads goes through the normal line discipline.
    """
    import termios
    import tty

    fd = (stream or sys.stdin).fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        # Escape sequences arrive in a single read.
        data = os.read(fd, 32)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
    return data.decode("utf-8", "replace")
