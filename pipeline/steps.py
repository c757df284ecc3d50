"""pipeline.steps

Central registry of build steps this package provides.

Why this exists
---------------
The host needs to discover steps without reflection or import-time magic. It
imports this module and looks entries up in :data:`STEPS`, a plain static
table. Adding a step means adding one entry here.

What belongs here
-----------------
Only small, pure facts and hooks:
- display name / help file for the host UI
- a factory that builds the step from its configuration
- form validators for individual fields

Anything that resolves installations or launches processes belongs in
:mod:`sonar_msbuild`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from sonar_msbuild.config import FormValidation, StepConfiguration, check_project_key
from sonar_msbuild.registry import InstallationRegistry
from sonar_msbuild.step import MsBuildBeginStep
from tools.core_cmd import Launcher


StepFactory = Callable[..., Any]


@dataclass(frozen=True)
class StepDescriptor:
    """Static metadata describing one build step."""

    key: str
    display_name: str
    help_file: str
    factory: StepFactory

    # field name (persisted key) -> validator
    validators: Mapping[str, Callable[[Optional[str]], FormValidation]] = field(default_factory=dict)

    def is_applicable(self, _job_type: str) -> bool:
        return True

    def validate(self, field_name: str, value: Optional[str]) -> FormValidation:
        check = self.validators.get(field_name)
        if check is None:
            return FormValidation(ok=True)
        return check(value)


def _msbuild_begin_factory(
    config: StepConfiguration,
    registry: InstallationRegistry,
    *,
    launcher: Optional[Launcher] = None,
    token_property: Optional[Callable[..., str]] = None,
) -> MsBuildBeginStep:
    return MsBuildBeginStep(config, registry, launcher=launcher, token_property=token_property)


# Canonical registry. Insertion order is the order shown to users.
STEPS: Dict[str, StepDescriptor] = {
    "msbuild-begin": StepDescriptor(
        key="msbuild-begin",
        display_name="SonarScanner for MSBuild - Begin Analysis",
        help_file="/plugin/sonar/help-ms-build-sq-scanner-begin.html",
        factory=_msbuild_begin_factory,
        validators={"projectKey": check_project_key},
    ),
}

STEP_LABELS: Dict[str, str] = {k: d.display_name for k, d in STEPS.items()}


def get_step(key: str) -> StepDescriptor:
    try:
        return STEPS[key]
    except KeyError:
        raise KeyError(f"Unknown step {key!r}. Known steps: {', '.join(STEPS)}") from None
