"""sonar_msbuild.registry

Read-only view over the configured installations.

Two kinds of named installations exist:

* **tool installations**: where SonarScanner for MSBuild lives on this node
* **service installations**: which SonarQube/SonarCloud server to talk to

Persisting and editing them is someone else's job; the step only queries.
Everything here is immutable, so one registry can be shared by concurrent
step executions.

Default selection rule
----------------------
When the step names no installation and at least one is configured, the first
one (file order) is used. A name that matches nothing resolves to ``None``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from tools.io import read_json

from .environment import expand
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "SCANNER_EXECUTABLES",
    "InstallationRegistry",
    "ServiceConnection",
    "ServiceInstallation",
    "ToolInstallation",
    "load_registry",
    "registry_from_dict",
    "registry_summary",
    "resolve_service_connection",
    "resolve_tool_installation",
]


# Looked up in this order inside an installation's home directory.
SCANNER_EXECUTABLES: Tuple[str, ...] = (
    "SonarScanner.MSBuild.exe",
    "MSBuild.SonarQube.Runner.exe",
    "SonarScanner.MSBuild.dll",
)


@dataclass(frozen=True)
class ToolInstallation:
    name: str
    home: str

    def resolve_path_for_current_node(self, env: Mapping[str, str]) -> str:
        """Absolute path of the scanner executable for this node.

        ``home`` may reference environment variables. It can point at the
        executable directly or at the directory containing it.
        """
        home = expand(self.home, env)
        if not home:
            raise ConfigurationError(f"SonarScanner for MSBuild installation '{self.name}' has no home configured.")

        p = Path(home)
        if p.is_file():
            return str(p)
        if not p.is_dir():
            raise ConfigurationError(
                f"SonarScanner for MSBuild installation '{self.name}': home does not exist: {home}"
            )

        for exe in SCANNER_EXECUTABLES:
            candidate = p / exe
            if candidate.is_file():
                return str(candidate)

        raise ConfigurationError(
            f"SonarScanner for MSBuild executable not found in {home} "
            f"(looked for: {', '.join(SCANNER_EXECUTABLES)})"
        )


@dataclass(frozen=True)
class ServiceConnection:
    """A service installation resolved for one run (token included)."""

    name: str
    server_url: str
    auth_token: str = field(default="", repr=False)
    additional_properties: str = ""
    additional_analysis_properties: Tuple[Tuple[str, str], ...] = ()

    def analysis_property_tokens(self) -> List[str]:
        """Fixed analysis properties in MSBuild form (``/d:key=value``)."""
        return [f"/d:{k}={v}" for k, v in self.additional_analysis_properties]


@dataclass(frozen=True)
class ServiceInstallation:
    name: str
    server_url: str = ""
    token: str = field(default="", repr=False)
    # Name of a build/environment variable holding the token.
    token_env: str = ""
    additional_properties: str = ""
    additional_analysis_properties: Tuple[Tuple[str, str], ...] = ()

    def resolve_auth_token(self, run_context: Mapping[str, str]) -> str:
        """Token for this run, or ``""`` when none is configured."""
        if self.token:
            return self.token
        if self.token_env:
            return run_context.get(self.token_env, "") or ""
        return ""

    def connect(self, run_context: Mapping[str, str]) -> ServiceConnection:
        return ServiceConnection(
            name=self.name,
            server_url=self.server_url,
            auth_token=self.resolve_auth_token(run_context),
            additional_properties=self.additional_properties,
            additional_analysis_properties=self.additional_analysis_properties,
        )


@dataclass(frozen=True)
class InstallationRegistry:
    tools: Tuple[ToolInstallation, ...] = ()
    services: Tuple[ServiceInstallation, ...] = ()

    def list_tool_installations(self) -> Sequence[ToolInstallation]:
        return self.tools

    def list_service_installations(self) -> Sequence[ServiceInstallation]:
        return self.services


_T = TypeVar("_T", ToolInstallation, ServiceInstallation)


def _pick(name: Optional[str], installations: Sequence[_T]) -> Optional[_T]:
    if not name and installations:
        return installations[0]
    for inst in installations:
        if inst.name == name:
            return inst
    return None


def resolve_tool_installation(name: Optional[str], registry: InstallationRegistry) -> Optional[ToolInstallation]:
    """Tool installation called *name*; the first one when *name* is empty."""
    return _pick(name, registry.list_tool_installations())


def resolve_service_connection(
    name: Optional[str],
    registry: InstallationRegistry,
    run_context: Optional[Mapping[str, str]] = None,
) -> Optional[ServiceConnection]:
    """Service connection called *name* (first one when empty), token resolved for this run."""
    inst = _pick(name, registry.list_service_installations())
    if inst is None:
        return None
    return inst.connect(run_context if run_context is not None else os.environ)


# -------------------------
# Registry file
# -------------------------

def _analysis_properties(raw: Any, where: str) -> Tuple[Tuple[str, str], ...]:
    if raw is None:
        return ()
    if isinstance(raw, dict):
        return tuple((str(k), "" if v is None else str(v)) for k, v in raw.items())
    raise ConfigurationError(f"{where}: additionalAnalysisProperties must be an object")


def _require_name(entry: Any, where: str) -> str:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where}: expected an object, got {type(entry).__name__}")
    name = entry.get("name")
    if not name:
        raise ConfigurationError(f"{where}: 'name' is required")
    return str(name)


def registry_from_dict(raw: Mapping[str, Any]) -> InstallationRegistry:
    tools: List[ToolInstallation] = []
    for i, entry in enumerate(raw.get("tools") or []):
        name = _require_name(entry, f"tools[{i}]")
        tools.append(ToolInstallation(name=name, home=str(entry.get("home") or "")))

    services: List[ServiceInstallation] = []
    for i, entry in enumerate(raw.get("services") or []):
        where = f"services[{i}]"
        name = _require_name(entry, where)
        services.append(
            ServiceInstallation(
                name=name,
                server_url=str(entry.get("serverUrl") or ""),
                token=str(entry.get("token") or ""),
                token_env=str(entry.get("tokenEnv") or ""),
                additional_properties=str(entry.get("additionalProperties") or ""),
                additional_analysis_properties=_analysis_properties(
                    entry.get("additionalAnalysisProperties"), where
                ),
            )
        )

    return InstallationRegistry(tools=tuple(tools), services=tuple(services))


def load_registry(path: Path) -> InstallationRegistry:
    """Load installations from a JSON file with ``tools`` and ``services`` arrays."""
    try:
        raw = read_json(path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Installation registry not found: {path}") from e
    except ValueError as e:
        raise ConfigurationError(f"Installation registry is not valid JSON: {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Installation registry must be a JSON object: {path}")

    registry = registry_from_dict(raw)
    logger.debug(
        "Loaded %d tool and %d service installations from %s",
        len(registry.tools),
        len(registry.services),
        path,
    )
    return registry


def registry_summary(registry: InstallationRegistry) -> Dict[str, List[str]]:
    return {
        "tools": [t.name for t in registry.tools],
        "services": [s.name for s in registry.services],
    }
