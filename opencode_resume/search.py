from __future__ import annotations

import logging
import re
import sys
from typing import Optional

from opencode_resume.models import SessionSummary
from opencode_resume.service import SessionServiceClient
from opencode_resume.session_source import is_candidate


logger = logging.getLogger(__name__)

TITLE_LOOKUP_LIMIT = 1000

_TITLE_SEPARATORS_RE = re.compile(r"[\s_]")


def normalize_title(title: str) -> str:
    """
    Canonical form used to compare titles typed on the command line:
    lower case, with whitespace and underscores turned into hyphens.
    """
    return _TITLE_SEPARATORS_RE.sub("-", title.lower())


def find_session_by_title(
    client: SessionServiceClient,
    title: str,
    directory: str,
) -> Optional[SessionSummary]:
    """
    Most recently updated interactive session in `directory` whose title
    matches `title` after normalisation, or None.
    """
    wanted = normalize_title(title)
    sessions = client.list_sessions(directory, TITLE_LOOKUP_LIMIT)
    found = [
        s
        for s in sessions
        if is_candidate(s, directory, require_activity=False) and normalize_title(s.title) == wanted
    ]
    if not found:
        logger.debug("no session titled %r in %s", title, directory)
        return None

    found = sorted(found, key=lambda s: -s.updated_at_ms)
    if len(found) > 1:
        print(f'Found {len(found)} sessions matching "{title}", using most recent', file=sys.stderr, flush=True)
    return found[0]
