"""sonar_msbuild.token_property

Which property name carries the authentication token.

Older servers only understand ``sonar.login``; SonarQube 10+ and SonarCloud
expect ``sonar.token``. The choice is a pluggable strategy: any callable that
takes a :class:`~sonar_msbuild.registry.ServiceConnection` and returns the
property key.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from tools.sonar.api import fetch_server_version, is_sonarcloud, parse_version

from .credentials import PROPERTY_SONAR_LOGIN, PROPERTY_SONAR_TOKEN
from .registry import ServiceConnection

logger = logging.getLogger(__name__)

# First SonarQube major version that accepts sonar.token.
TOKEN_PROPERTY_MIN_MAJOR = 10


def legacy_login_property(_service: ServiceConnection) -> str:
    return PROPERTY_SONAR_LOGIN


def token_property(_service: ServiceConnection) -> str:
    return PROPERTY_SONAR_TOKEN


class ServerVersionTokenProperty:
    """Ask the server for its version and pick the matching property.

    If the version cannot be determined, ``sonar.login`` is used: every server
    version still accepts it.
    """

    def __init__(
        self,
        fetch_version: Optional[Callable[[str, Optional[str]], str]] = None,
        min_major: int = TOKEN_PROPERTY_MIN_MAJOR,
    ) -> None:
        self._fetch_version = fetch_version or fetch_server_version
        self._min_major = min_major

    def __call__(self, service: ServiceConnection) -> str:
        if is_sonarcloud(service.server_url):
            return PROPERTY_SONAR_TOKEN

        try:
            version = parse_version(self._fetch_version(service.server_url, service.auth_token or None))
        except (requests.RequestException, ValueError) as e:
            logger.warning(
                "Could not determine server version of %s (%s); using %s",
                service.server_url,
                e,
                PROPERTY_SONAR_LOGIN,
            )
            return PROPERTY_SONAR_LOGIN

        if version[0] >= self._min_major:
            return PROPERTY_SONAR_TOKEN
        return PROPERTY_SONAR_LOGIN
