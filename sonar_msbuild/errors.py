"""sonar_msbuild.errors

Error taxonomy for the begin step.

Every error here is terminal for the current step invocation. Nothing in this
package retries; the pipeline owner decides what to do at a higher level.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .outcome import StepOutcome


class StepError(RuntimeError):
    """Base class for all failures surfaced by the begin step."""


class ConfigurationError(StepError):
    """A required installation or service connection could not be resolved.

    Raised before any subprocess is launched.
    """


class LaunchError(StepError):
    """The scanner process could not be started (missing binary, permissions...)."""


class ExecutionFailure(StepError):
    """The scanner ran to completion but returned a non-zero exit code."""

    def __init__(self, outcome: "StepOutcome") -> None:
        super().__init__(outcome.message)
        self.outcome = outcome

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code


class InterruptedExecution(StepError):
    """The enclosing pipeline aborted the run; the child process was killed."""
