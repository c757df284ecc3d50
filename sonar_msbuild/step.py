"""sonar_msbuild.step

The ``begin`` build step: resolve installations, build the command line, run
SonarScanner for MSBuild once, report the outcome.

Flow
----
  environment + registry -> build_arguments -> ProcessOrchestrator -> outcome

Installations and service connections are resolved on every :meth:`perform`
call, never cached, so registry changes apply to the next run immediately.
"""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Mapping, Optional

from tools.core_cmd import Launcher, which_or_raise

from .arguments import TokenPropertyStrategy, build_arguments
from .config import StepConfiguration
from .environment import build_environment, module_root
from .errors import ConfigurationError
from .outcome import TOOL_LABEL, StepOutcome, translate_exit_code
from .process import ProcessOrchestrator
from .registry import (
    InstallationRegistry,
    ServiceConnection,
    resolve_service_connection,
    resolve_tool_installation,
)
from .token_property import ServerVersionTokenProperty

logger = logging.getLogger(__name__)

# Tried on PATH when no tool installation is configured at all.
DEFAULT_EXECUTABLES = ("SonarScanner.MSBuild.exe", "dotnet-sonarscanner")


@dataclass(frozen=True)
class BeginParams:
    """Installation names used by ``begin``; the matching ``end`` step reuses them."""

    scanner_installation_name: str
    service_installation_name: str

    def to_dict(self) -> dict:
        return {
            "msBuildScannerInstallationName": self.scanner_installation_name,
            "sonarInstallationName": self.service_installation_name,
        }


@dataclass
class RunContext:
    """Per-execution state handed to the step by the pipeline host."""

    workspace: Path
    build_variables: Mapping[str, str] = field(default_factory=dict)
    module_root_override: Optional[str] = None
    sink: BinaryIO = field(default_factory=lambda: sys.stdout.buffer)
    cancel_event: Optional[threading.Event] = None
    # None -> inherit os.environ
    base_env: Optional[Mapping[str, str]] = None
    params: List[BeginParams] = field(default_factory=list)


class MsBuildBeginStep:
    def __init__(
        self,
        config: StepConfiguration,
        registry: InstallationRegistry,
        *,
        launcher: Optional[Launcher] = None,
        token_property: Optional[TokenPropertyStrategy] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.orchestrator = ProcessOrchestrator(launcher)
        self.token_property = token_property or ServerVersionTokenProperty()

    def perform(self, run: RunContext) -> StepOutcome:
        """Run the begin phase. Raises a :class:`~sonar_msbuild.errors.StepError` on any failure."""
        env = build_environment(run.base_env, run.build_variables)

        service = self._service_connection(env)
        run.params.append(
            BeginParams(
                scanner_installation_name=self.config.tool_installation_name,
                service_installation_name=self.config.service_installation_name,
            )
        )
        tool_path = self._tool_path(env)

        args = build_arguments(
            self.config,
            tool_path,
            service,
            env,
            token_property=self.token_property,
        )

        cwd = module_root(run.workspace, run.module_root_override)
        exit_code = self.orchestrator.run(args, env, cwd, run.sink, cancel_event=run.cancel_event)

        outcome = translate_exit_code(exit_code, TOOL_LABEL)
        if outcome.ok:
            logger.info("%s begin finished successfully", TOOL_LABEL)
        return outcome.raise_for_status()

    def _service_connection(self, env: Mapping[str, str]) -> ServiceConnection:
        name = self.config.service_installation_name
        service = resolve_service_connection(name, self.registry, env)
        if service is None:
            count = len(self.registry.list_service_installations())
            raise ConfigurationError(
                f"SonarQube installation defined in this job ({name}) does not match any configured "
                f"installation. Number of installations that can be configured: {count}."
            )
        return service

    def _tool_path(self, env: Mapping[str, str]) -> str:
        name = self.config.tool_installation_name
        inst = resolve_tool_installation(name, self.registry)
        if inst is not None:
            return inst.resolve_path_for_current_node(env)

        if name:
            raise ConfigurationError(
                f"SonarScanner for MSBuild installation '{name}' does not match any configured installation."
            )

        for exe in DEFAULT_EXECUTABLES:
            try:
                found = which_or_raise(exe)
            except FileNotFoundError:
                continue
            logger.info("No SonarScanner for MSBuild installation configured; using %s", found)
            return found

        raise ConfigurationError(
            "No SonarScanner for MSBuild installation configured and none of "
            f"{', '.join(DEFAULT_EXECUTABLES)} found on PATH."
        )
