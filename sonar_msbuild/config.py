"""sonar_msbuild.config

Step configuration, its persisted form, and the one-time legacy migration.

Persisted shape
---------------
Step configurations are stored as JSON objects using the historical camelCase
keys::

    {
      "configVersion": 2,
      "msBuildScannerInstallationName": "scanner-5",
      "sonarInstallationName": "corp-sonar",
      "projectKey": "demo",
      "projectName": "Demo",
      "projectVersion": "1.0",
      "additionalArguments": "/d:sonar.verbose=true"
    }

Version 1 files may carry ``msBuildRunnerInstallationName`` (the tool-name
field before it was renamed). :func:`migrate_step_config` rewrites them once,
right after loading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from tools.io import read_json

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_VERSION = 2

LEGACY_TOOL_FIELD = "msBuildRunnerInstallationName"
TOOL_FIELD = "msBuildScannerInstallationName"

# dataclass attribute -> persisted key
_PERSISTED_KEYS: Dict[str, str] = {
    "tool_installation_name": TOOL_FIELD,
    "service_installation_name": "sonarInstallationName",
    "project_key": "projectKey",
    "project_name": "projectName",
    "project_version": "projectVersion",
    "additional_arguments": "additionalArguments",
}


@dataclass(frozen=True)
class StepConfiguration:
    """What the user configured for one begin step. Never holds ``None``."""

    tool_installation_name: str = ""
    service_installation_name: str = ""
    project_key: str = ""
    project_name: str = ""
    project_version: str = ""
    additional_arguments: str = ""

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            object.__setattr__(self, f.name, "" if value is None else str(value))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "StepConfiguration":
        return cls(**{attr: raw.get(key) for attr, key in _PERSISTED_KEYS.items()})

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"configVersion": CONFIG_VERSION}
        for attr, key in _PERSISTED_KEYS.items():
            out[key] = getattr(self, attr)
        return out

    def with_overrides(self, **overrides: Optional[str]) -> "StepConfiguration":
        """Copy with the given non-``None`` fields replaced."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for name, value in overrides.items():
            if name not in values:
                raise TypeError(f"Unknown configuration field: {name}")
            if value is not None:
                values[name] = value
        return StepConfiguration(**values)


def migrate_step_config(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Bring a persisted configuration up to :data:`CONFIG_VERSION`.

    Version 1 -> 2: if the deprecated tool field is set and the canonical one
    is not, copy it over. The deprecated key is dropped either way.

    Running this on an already migrated mapping returns an equal mapping.
    """
    out = dict(raw)
    try:
        version = int(out.get("configVersion") or 1)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configVersion: {out.get('configVersion')!r}") from e

    if version < 2:
        legacy = out.pop(LEGACY_TOOL_FIELD, None)
        if legacy is not None and not out.get(TOOL_FIELD):
            logger.info("Migrating %s=%r to %s", LEGACY_TOOL_FIELD, legacy, TOOL_FIELD)
            out[TOOL_FIELD] = str(legacy)
        version = 2

    out.pop(LEGACY_TOOL_FIELD, None)
    out["configVersion"] = version
    return out


def load_step_config(path: Path) -> StepConfiguration:
    """Read a persisted step configuration, migrating it once."""
    try:
        raw = read_json(path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Step configuration not found: {path}") from e
    except ValueError as e:
        raise ConfigurationError(f"Step configuration is not valid JSON: {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Step configuration must be a JSON object: {path}")
    return StepConfiguration.from_dict(migrate_step_config(raw))


@dataclass(frozen=True)
class FormValidation:
    ok: bool
    message: str = ""


MANDATORY_PROPERTY = "This property is mandatory."


def check_project_key(value: Optional[str]) -> FormValidation:
    """Form-level check for the project key (the step itself does not enforce it)."""
    if value:
        return FormValidation(ok=True)
    return FormValidation(ok=False, message=MANDATORY_PROPERTY)
