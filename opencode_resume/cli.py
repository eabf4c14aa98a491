from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from opencode_resume import __version__
from opencode_resume.config import ResumeConfig, load_config
from opencode_resume.launching import attach_session, require_opencode_path
from opencode_resume.models import ExistingSession, NewSession, PickerResult
from opencode_resume.picker import show_picker
from opencode_resume.search import find_session_by_title
from opencode_resume.server import ServerStartError, ensure_server_running
from opencode_resume.service import ServiceError, SessionServiceClient


ENV_LOG_LEVEL = "OPENCODE_RESUME_LOG_LEVEL"

logger = logging.getLogger("opencode_resume")


def setup_logging(debug: bool = False) -> None:
    level_name = "DEBUG" if debug else (os.environ.get(ENV_LOG_LEVEL) or "WARNING")
    level = getattr(logging, level_name.strip().upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="opencode-resume",
        description=(
            "Resume an opencode session for the current directory. "
            "Without a title, pick one interactively."
        ),
        epilog=(
            "Titles are matched case-insensitively; spaces and underscores "
            'count as hyphens ("API Server" == "api-server").'
        ),
    )
    p.add_argument("title", nargs="?", help="session title to resume or create")
    p.add_argument("--url", help="opencode server URL (default: $OPENCODE_RESUME_URL or http://localhost:4096)")
    p.add_argument("--debug", action="store_true", help="verbose logging to stderr")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _ensure_server(client: SessionServiceClient, config: ResumeConfig) -> bool:
    try:
        opencode = require_opencode_path(config.opencode_path)
        ensure_server_running(client, opencode_path=opencode, port=config.port, timeout_s=config.timeout_s)
    except (ServerStartError, RuntimeError) as e:
        print("Failed to start or connect to the opencode server.", file=sys.stderr)
        print("  Start it manually with: opencode serve", file=sys.stderr)
        print(f"  Error: {e}", file=sys.stderr)
        return False
    return True


def _resolve_by_title(client: SessionServiceClient, title: str, cwd: str) -> PickerResult:
    found = find_session_by_title(client, title, cwd)
    if found is None:
        return NewSession(title)
    print(f"Resuming session: {found.title}", file=sys.stderr)
    print(f"  ID: {found.session_id}", file=sys.stderr)
    return ExistingSession(found.session_id)


def _session_id_for(client: SessionServiceClient, result: PickerResult, cwd: str) -> str:
    if isinstance(result, ExistingSession):
        return result.session_id
    if isinstance(result, NewSession):
        print(f"Creating new session: {result.title}", file=sys.stderr)
        sid = client.create_session(result.title, cwd)
        print(f"  Created with ID: {sid}", file=sys.stderr)
        return sid
    raise TypeError(f"unexpected picker result: {result!r}")


def cmd_resume(config: ResumeConfig, title: Optional[str], cwd: str) -> int:
    client = SessionServiceClient(config)
    if not _ensure_server(client, config):
        return 1

    try:
        if title:
            result = _resolve_by_title(client, title, cwd)
        else:
            if not sys.stdin.isatty():
                print("The session picker needs an interactive terminal; pass a title instead.", file=sys.stderr)
                return 2
            result = show_picker(cwd, client=client)
        session_id = _session_id_for(client, result, cwd)
    except ServiceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return attach_session(session_id, directory=cwd, opencode_path=config.opencode_path)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.debug)
    config = load_config().with_base_url(args.url)
    logger.debug("using %s", config)
    return cmd_resume(config, args.title, os.getcwd())
