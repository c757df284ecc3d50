"""sonar_msbuild.credentials

Which analysis properties carry credentials.

Masking only affects what is echoed to logs; the real value is always passed
to the scanner.
"""

from __future__ import annotations

PROPERTY_SONAR_LOGIN = "sonar.login"
PROPERTY_SONAR_TOKEN = "sonar.token"

# Placeholder shown instead of a secret value in echoed command lines.
MASK = "****"

SECRET_MARKERS = (PROPERTY_SONAR_LOGIN, PROPERTY_SONAR_TOKEN)


def is_secret(property_key: str) -> bool:
    """True if *property_key* names a login/token property."""
    key = property_key or ""
    return any(marker in key for marker in SECRET_MARKERS)
