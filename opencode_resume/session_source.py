"""
Candidate sessions for the picker.

The list is fetched once, narrowed to interactive sessions of the working
directory, sorted most recent first, and then enriched with a preview of the
last thing the user typed. Enrichment is best-effort: a session whose messages
cannot be read simply has no preview.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from opencode_resume.models import SessionSummary
from opencode_resume.service import SessionServiceClient, is_interactive_session


logger = logging.getLogger(__name__)

__all__ = [
    "LIST_LIMIT",
    "PREVIEW_COUNT",
    "PREVIEW_MESSAGE_LIMIT",
    "fetch_preview",
    "is_candidate",
    "is_interactive_session",
    "last_user_message",
    "list_candidate_sessions",
]

LIST_LIMIT = 100
PREVIEW_COUNT = 20
PREVIEW_MESSAGE_LIMIT = 10


def is_candidate(session: SessionSummary, directory: str, *, require_activity: bool = True) -> bool:
    if session.directory != directory or not session.is_interactive:
        return False
    # A session that was never touched after creation has nothing to preview.
    if require_activity and session.updated_at_ms == session.created_at_ms:
        return False
    return True


def last_user_message(messages: Iterable[Dict[str, Any]]) -> Optional[str]:
    """
    Text of the most recent user message.

    Messages arrive oldest first as `{"info": {...}, "parts": [...]}`; we walk
    them backwards and take the first non-empty text part of a user message.
    """
    for msg in reversed(list(messages)):
        info = msg.get("info")
        if not isinstance(info, dict) or info.get("role") != "user":
            continue
        parts = msg.get("parts")
        if not isinstance(parts, list):
            continue
        for part in parts:
            if not isinstance(part, dict) or part.get("type") != "text":
                continue
            text = part.get("text")
            if isinstance(text, str) and text:
                return text
    return None


def fetch_preview(
    client: SessionServiceClient,
    session_id: str,
    directory: str,
    *,
    limit: int = PREVIEW_MESSAGE_LIMIT,
) -> Optional[str]:
    """Preview text for one session, or None if it cannot be determined."""
    try:
        return last_user_message(client.messages(session_id, directory, limit))
    except Exception as e:
        logger.debug("preview for %s unavailable: %s", session_id, e)
        return None


def list_candidate_sessions(
    client: SessionServiceClient,
    directory: str,
    *,
    limit: int = LIST_LIMIT,
    preview_count: int = PREVIEW_COUNT,
    preview_message_limit: int = PREVIEW_MESSAGE_LIMIT,
    require_activity: bool = True,
) -> List[SessionSummary]:
    sessions = client.list_sessions(directory, limit)
    candidates = [s for s in sessions if is_candidate(s, directory, require_activity=require_activity)]
    # sorted() is stable: equal timestamps keep the service's order.
    candidates = sorted(candidates, key=lambda s: -s.updated_at_ms)
    logger.debug("%d of %d sessions are candidates for %s", len(candidates), len(sessions), directory)

    head = candidates[: max(0, preview_count)]
    tail = candidates[len(head):]
    if not head:
        return tail

    with ThreadPoolExecutor(max_workers=len(head)) as pool:
        previews = list(
            pool.map(
                lambda s: fetch_preview(client, s.session_id, directory, limit=preview_message_limit),
                head,
            )
        )
    enriched = [s.with_preview(p) for s, p in zip(head, previews)]
    return enriched + tail
