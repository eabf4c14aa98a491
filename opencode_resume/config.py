from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import urlsplit


ENV_OPENCODE_RESUME_URL = "OPENCODE_RESUME_URL"
ENV_OPENCODE_RESUME_TIMEOUT = "OPENCODE_RESUME_TIMEOUT"
ENV_OPENCODE_PATH = "OPENCODE_PATH"

DEFAULT_BASE_URL = "http://localhost:4096"
DEFAULT_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class ResumeConfig:
    """
    Where the opencode service lives and how to reach it.

    Passed explicitly to the service client, the server bootstrap and the
    launcher; nothing reads the endpoint from module state.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    opencode_path: Optional[str] = None

    @property
    def port(self) -> Optional[int]:
        try:
            return urlsplit(self.base_url).port
        except ValueError:
            return None

    def with_base_url(self, base_url: Optional[str]) -> "ResumeConfig":
        url = (base_url or "").strip()
        if not url:
            return self
        return replace(self, base_url=url.rstrip("/"))


def _parse_timeout(value: Optional[str]) -> float:
    if not value:
        return DEFAULT_TIMEOUT_S
    try:
        t = float(value.strip())
    except ValueError:
        return DEFAULT_TIMEOUT_S
    return t if t > 0 else DEFAULT_TIMEOUT_S


def load_config(environ: Optional[Mapping[str, str]] = None) -> ResumeConfig:
    """
    Build the configuration from the environment.

    Resolution order for each field:
    - $OPENCODE_RESUME_URL / $OPENCODE_RESUME_TIMEOUT / $OPENCODE_PATH
    - built-in defaults
    """
    env = os.environ if environ is None else environ

    url = (env.get(ENV_OPENCODE_RESUME_URL) or "").strip() or DEFAULT_BASE_URL
    path = (env.get(ENV_OPENCODE_PATH) or "").strip() or None
    return ResumeConfig(
        base_url=url.rstrip("/"),
        timeout_s=_parse_timeout(env.get(ENV_OPENCODE_RESUME_TIMEOUT)),
        opencode_path=path,
    )
