from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from opencode_resume.config import ENV_OPENCODE_PATH


logger = logging.getLogger(__name__)


def resolve_opencode_path(explicit: Optional[str] = None) -> Optional[str]:
    """
    Resolve the `opencode` executable.

    Priority:
    - explicit arg
    - $OPENCODE_PATH
    - PATH lookup
    - ~/.opencode/bin/opencode
    """
    if explicit:
        p = Path(explicit).expanduser()
        return str(p) if p.exists() else None

    env = os.environ.get(ENV_OPENCODE_PATH)
    if env:
        p = Path(env).expanduser()
        return str(p) if p.exists() else None

    found = shutil.which("opencode")
    if found:
        return found

    default = Path.home() / ".opencode" / "bin" / "opencode"
    if default.exists():
        return str(default)

    return None


def require_opencode_path(explicit: Optional[str] = None) -> str:
    path = resolve_opencode_path(explicit)
    if not path:
        raise RuntimeError("opencode not found. Install it or set OPENCODE_PATH.")
    return path


def build_attach_command(session_id: str, *, opencode_path: str) -> List[str]:
    return [opencode_path, "--session", session_id]


def run_opencode(cmd: List[str], *, cwd: Optional[str] = None) -> int:
    """
    Run opencode attached to this terminal and return its exit code.

    Ctrl+C reaches the child through the shared process group; if it also
    interrupts our wait we forward SIGINT and keep waiting.
    """
    logger.debug("launching %s in %s", cmd, cwd)
    try:
        p = subprocess.Popen(list(cmd), cwd=cwd)
    except OSError as e:
        raise RuntimeError(f"failed to start opencode: {e}") from e
    try:
        rc = p.wait()
    except KeyboardInterrupt:
        try:
            p.send_signal(signal.SIGINT)
        except OSError:
            pass
        rc = p.wait()
    # Killed by a signal: report it the way a shell would.
    return rc if rc >= 0 else 128 - rc


def attach_session(session_id: str, *, directory: str, opencode_path: Optional[str] = None) -> int:
    path = require_opencode_path(opencode_path)
    cmd = build_attach_command(session_id, opencode_path=path)
    print("", file=sys.stderr, flush=True)
    return run_opencode(cmd, cwd=directory)
