"""sonar_msbuild

Core of the SonarScanner for MSBuild ``begin`` pipeline step.

What lives here
---------------
* step configuration and its persisted/legacy forms (:mod:`.config`)
* the read-only installation registry (:mod:`.registry`)
* macro expansion and the build environment (:mod:`.environment`)
* command-line construction and masking (:mod:`.arguments`, :mod:`.credentials`)
* running the scanner and reporting the outcome (:mod:`.process`, :mod:`.outcome`)

The CLI (``msbuild_cli.py``) and the step table (:mod:`pipeline.steps`) are
thin composition roots around :class:`.step.MsBuildBeginStep`.
"""

from __future__ import annotations

from .arguments import ArgumentList, build_arguments
from .config import StepConfiguration, load_step_config, migrate_step_config
from .errors import (
    ConfigurationError,
    ExecutionFailure,
    InterruptedExecution,
    LaunchError,
    StepError,
)
from .outcome import StepOutcome, StepStatus, translate_exit_code
from .registry import InstallationRegistry, load_registry
from .step import BeginParams, MsBuildBeginStep, RunContext

__all__ = [
    "ArgumentList",
    "BeginParams",
    "ConfigurationError",
    "ExecutionFailure",
    "InstallationRegistry",
    "InterruptedExecution",
    "LaunchError",
    "MsBuildBeginStep",
    "RunContext",
    "StepConfiguration",
    "StepError",
    "StepOutcome",
    "StepStatus",
    "build_arguments",
    "load_registry",
    "load_step_config",
    "migrate_step_config",
    "translate_exit_code",
]
