"""
Make sure an `opencode serve` process is answering before we talk to it.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from typing import Callable, List, Optional

from opencode_resume.service import SessionServiceClient


logger = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT_S = 5.0
POLL_INTERVAL_S = 0.2


class ServerStartError(RuntimeError):
    pass


def build_serve_command(opencode_path: str, *, port: Optional[int] = None) -> List[str]:
    cmd = [opencode_path, "serve"]
    if port is not None:
        cmd.extend(["--port", str(port)])
    return cmd


def start_server(cmd: List[str]) -> None:
    """
    Spawn the server detached from our process group with its output
    discarded; it keeps running after we exec into the TUI.
    """
    logger.debug("starting server: %s", cmd)
    try:
        subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise ServerStartError(f"could not run {cmd[0]!r}: {e}") from e


def wait_for_server(
    client: SessionServiceClient,
    *,
    timeout_s: float = DEFAULT_STARTUP_TIMEOUT_S,
    interval_s: float = POLL_INTERVAL_S,
    sleep: Callable[[float], None] = time.sleep,
    monotonic: Callable[[], float] = time.monotonic,
) -> None:
    deadline = monotonic() + timeout_s
    while monotonic() < deadline:
        if client.ping():
            return
        sleep(interval_s)
    raise ServerStartError(f"server failed to start within {timeout_s:g}s")


def ensure_server_running(
    client: SessionServiceClient,
    *,
    opencode_path: str,
    port: Optional[int] = None,
    timeout_s: float = DEFAULT_STARTUP_TIMEOUT_S,
    sleep: Callable[[float], None] = time.sleep,
    monotonic: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Returns True if a server had to be started, False if one was already up.
    Raises ServerStartError if none becomes reachable in time.
    """
    if client.ping():
        logger.debug("server already running at %s", client.config.base_url)
        return False

    print("Starting opencode server...", file=sys.stderr, flush=True)
    start_server(build_serve_command(opencode_path, port=port))
    wait_for_server(client, timeout_s=timeout_s, sleep=sleep, monotonic=monotonic)
    logger.info("server started at %s", client.config.base_url)
    return True
