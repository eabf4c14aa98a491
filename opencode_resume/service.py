"""
Thin HTTP client for the opencode session service.

Only what the launcher needs is wrapped: list, messages, create and a health
probe.
Transport errors are translated into `ServiceUnavailable` so callers can tell
"the server is not there" apart from "the server answered badly".
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from opencode_resume.config import ResumeConfig
from opencode_resume.models import SessionSummary


logger = logging.getLogger(__name__)


# (method, url, body, timeout_s, headers) -> response body
Request = Callable[[str, str, Optional[bytes], float, Dict[str, str]], bytes]

SUBAGENT_PERMISSION = "todowrite"
SUBAGENT_ACTION = "deny"


class ServiceError(RuntimeError):
    """The session service answered, but not with something usable."""


class ServiceUnavailable(ServiceError):
    """The session service could not be reached."""


def _default_request(
    method: str,
    url: str,
    body: Optional[bytes],
    timeout_s: float,
    headers: Dict[str, str],
) -> bytes:
    req = urllib.request.Request(url, data=body, headers=headers, method=method)
    with urllib.request.urlopen(req, timeout=timeout_s) as resp:
        return resp.read()


def _http_headers(*, with_body: bool = False) -> Dict[str, str]:
    headers = {
        "User-Agent": "opencode-resume",
        "Accept": "application/json",
    }
    if with_body:
        headers["Content-Type"] = "application/json"
    return headers


def is_interactive_session(raw: Dict[str, Any]) -> bool:
    """
    Sub-agent sessions are created with a restricted permission set; a
    `todowrite: deny` rule is the marker we key on.
    """
    rules = raw.get("permission")
    if not isinstance(rules, list):
        return True
    for rule in rules:
        if not isinstance(rule, dict):
            continue
        if rule.get("permission") == SUBAGENT_PERMISSION and rule.get("action") == SUBAGENT_ACTION:
            return False
    return True


def _as_int(v: object) -> int:
    if isinstance(v, bool):
        return 0
    if isinstance(v, (int, float)):
        return int(v)
    return 0


def session_from_json(raw: object) -> Optional[SessionSummary]:
    if not isinstance(raw, dict):
        return None
    sid = raw.get("id")
    if not isinstance(sid, str) or not sid:
        return None
    title = raw.get("title")
    directory = raw.get("directory")
    times = raw.get("time") if isinstance(raw.get("time"), dict) else {}
    return SessionSummary(
        session_id=sid,
        title=title if isinstance(title, str) else "",
        updated_at_ms=_as_int(times.get("updated")),
        created_at_ms=_as_int(times.get("created")),
        directory=directory if isinstance(directory, str) else "",
        is_interactive=is_interactive_session(raw),
    )


class SessionServiceClient:
    def __init__(self, config: ResumeConfig, *, request: Request = _default_request) -> None:
        self._config = config
        self._request = request

    @property
    def config(self) -> ResumeConfig:
        return self._config

    def _url(self, path: str, params: Dict[str, object]) -> str:
        base = self._config.base_url.rstrip("/")
        query = urlencode({k: v for k, v in params.items() if v is not None})
        return f"{base}{path}?{query}" if query else f"{base}{path}"

    def _call(self, method: str, path: str, params: Dict[str, object], payload: Optional[dict] = None) -> object:
        url = self._url(path, params)
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        logger.debug("%s %s", method, url)
        try:
            raw = self._request(method, url, body, self._config.timeout_s, _http_headers(with_body=body is not None))
        except urllib.error.HTTPError as e:
            raise ServiceError(f"{method} {path} failed: HTTP {e.code}") from e
        except OSError as e:
            # URLError, refused connections and socket timeouts all land here.
            raise ServiceUnavailable(f"opencode server not reachable at {self._config.base_url}: {e}") from e
        except http.client.HTTPException as e:
            # Truncated or malformed responses from a server that did answer.
            raise ServiceError(f"{method} {path} failed: {e!r}") from e
        try:
            return json.loads(raw.decode("utf-8", "replace"))
        except ValueError as e:
            raise ServiceError(f"{method} {path} returned invalid JSON") from e

    def list_sessions(self, directory: str, limit: int = 100) -> List[SessionSummary]:
        obj = self._call("GET", "/session", {"directory": directory, "limit": limit})
        if not isinstance(obj, list):
            raise ServiceError("unexpected session list response shape")
        out: List[SessionSummary] = []
        for item in obj:
            s = session_from_json(item)
            if s is not None:
                out.append(s)
        return out

    def messages(self, session_id: str, directory: str, limit: int = 10) -> List[Dict[str, Any]]:
        path = f"/session/{quote(session_id, safe='')}/message"
        obj = self._call("GET", path, {"directory": directory, "limit": limit})
        if not isinstance(obj, list):
            raise ServiceError("unexpected message list response shape")
        return [m for m in obj if isinstance(m, dict)]

    def create_session(self, title: str, directory: str) -> str:
        obj = self._call("POST", "/session", {"directory": directory}, {"title": title})
        sid = obj.get("id") if isinstance(obj, dict) else None
        if not isinstance(sid, str) or not sid:
            raise ServiceError("failed to create session: response has no id")
        return sid

    def ping(self) -> bool:
        try:
            self._call("GET", "/session", {"limit": 1})
        except ServiceError:
            return False
        return True
