"""tools/sonar/api.py

HTTP calls to a SonarQube / SonarCloud server.

Design goals:
  - Keep network I/O separated from argument building.
  - Callers decide how to degrade on failure; this module only raises
    ``requests.RequestException`` (or ``ValueError`` for unparsable replies).
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

import requests

SONARCLOUD_HOSTS = ("sonarcloud.io", "sonarqube.us")


def _auth_headers(token: Optional[str]) -> Dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def is_sonarcloud(server_url: str) -> bool:
    host = (urlparse(server_url or "").hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in SONARCLOUD_HOSTS)


def fetch_server_version(server_url: str, token: Optional[str] = None, timeout_sec: int = 10) -> str:
    """Return the raw version string from ``/api/server/version`` (e.g. ``"10.4.1.88267"``)."""
    resp = requests.get(
        f"{server_url.rstrip('/')}/api/server/version",
        headers=_auth_headers(token),
        timeout=timeout_sec,
    )
    resp.raise_for_status()
    version = resp.text.strip()
    if not version:
        raise ValueError(f"Empty server version from {server_url}")
    return version


def parse_version(version: str) -> Tuple[int, ...]:
    """``"9.9.0.65466"`` -> ``(9, 9, 0, 65466)``. Non-numeric parts stop parsing."""
    parts = []
    for piece in (version or "").strip().split("."):
        digits = ""
        for ch in piece:
            if not ch.isdigit():
                break
            digits += ch
        if not digits:
            break
        parts.append(int(digits))
        if len(digits) != len(piece):
            break
    if not parts:
        raise ValueError(f"Unrecognized server version: {version!r}")
    return tuple(parts)
