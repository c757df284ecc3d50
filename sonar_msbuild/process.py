"""sonar_msbuild.process

Runs the built command line exactly once and maps launcher failures onto the
step's error taxonomy.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import BinaryIO, Mapping, Optional

from tools.core_cmd import CommandCancelled, Launcher, SubprocessLauncher

from .arguments import ArgumentList
from .errors import InterruptedExecution, LaunchError

logger = logging.getLogger(__name__)


class ProcessOrchestrator:
    def __init__(self, launcher: Optional[Launcher] = None) -> None:
        self.launcher = launcher or SubprocessLauncher()

    def run(
        self,
        arguments: ArgumentList,
        env: Mapping[str, str],
        cwd: Path,
        sink: BinaryIO,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        """Launch the scanner and block until it exits. Returns its exit code.

        Only the masked command line is ever echoed.
        """
        command_line = arguments.to_command_line()
        sink.write(f"[{cwd}] $ {command_line}\n".encode("utf-8"))
        logger.debug("Launching in %s: %s", cwd, command_line)

        argv = arguments.to_list()
        try:
            exit_code = self.launcher.launch(argv, env=env, cwd=cwd, sink=sink, cancel_event=cancel_event)
        except CommandCancelled as e:
            raise InterruptedExecution(f"Scanner execution aborted ({e.reason.lower()})") from e
        except OSError as e:
            raise LaunchError(f"Failed to launch {argv[0]}: {e}") from e

        logger.debug("Scanner exited with code %s", exit_code)
        return int(exit_code)
