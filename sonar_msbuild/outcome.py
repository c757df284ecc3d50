"""sonar_msbuild.outcome

Exit code -> step outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ExecutionFailure

TOOL_LABEL = "SonarScanner for MSBuild"


class StepStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class StepOutcome:
    status: StepStatus
    exit_code: int
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.SUCCESS

    def raise_for_status(self) -> "StepOutcome":
        if not self.ok:
            raise ExecutionFailure(self)
        return self


def translate_exit_code(exit_code: int, tool_label: str = TOOL_LABEL) -> StepOutcome:
    if exit_code == 0:
        return StepOutcome(status=StepStatus.SUCCESS, exit_code=0)
    return StepOutcome(
        status=StepStatus.FAILED,
        exit_code=exit_code,
        message=f"{tool_label} execution failed with exit code {exit_code}",
    )
