"""tools/core_cmd.py

Process-launch primitives.

This module deliberately avoids scanner-specific knowledge. It provides:

* :func:`which_or_raise` - resolve executables reliably across environments.
* :class:`SubprocessLauncher` - run one process (no ``shell=True``), streaming
  its combined stdout/stderr to a byte sink while it runs.
* :class:`RecordingLauncher` - record launches instead of executing them.

Rule
----
Only this module should touch ``subprocess``.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Mapping, Optional, Sequence, cast

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


class CommandCancelled(RuntimeError):
    """The launch was cancelled and the child process killed."""

    def __init__(self, argv: Sequence[str], reason: str) -> None:
        super().__init__(f"{reason}: {argv[0] if argv else '<empty>'}")
        self.argv = list(argv)
        self.reason = reason


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path.

    Tries ``PATH`` first, then each fallback path that exists and is executable.
    """
    found = shutil.which(bin_name)
    if found:
        return found

    for candidate in fallbacks or []:
        p = Path(candidate)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise FileNotFoundError(
        f"Executable '{bin_name}' not found on PATH.\n"
        f"Tried fallbacks: {fallbacks or []}"
    )


class Launcher:
    """Abstract launch interface: run argv, stream output, return exit code."""

    def launch(
        self,
        argv: Sequence[str],
        *,
        env: Optional[Mapping[str, str]],
        cwd: Optional[Path],
        sink: BinaryIO,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        raise NotImplementedError


def _pump(stream: BinaryIO, sink: BinaryIO) -> None:
    read = getattr(stream, "read1", stream.read)
    for chunk in iter(lambda: read(_CHUNK_SIZE), b""):
        sink.write(chunk)
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()


_NEW_SESSION = os.name == "posix"


def _kill(proc: subprocess.Popen) -> None:
    """Kill *proc* and, on POSIX, every process left in its session's group."""
    if _NEW_SESSION:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except OSError:
            # whole group already gone
            pass
    if proc.poll() is not None:
        return
    try:
        proc.kill()
    except OSError:
        # already gone
        return
    proc.wait()


class SubprocessLauncher(Launcher):
    """Runs the process via :class:`subprocess.Popen`.

    Blocks until the process exits. Output is forwarded chunk by chunk from a
    reader thread, so long runs show progress live. Raises ``OSError`` when
    the executable cannot be started and :class:`CommandCancelled` when
    *cancel_event* is set or the caller is interrupted.
    """

    def __init__(self, poll_interval: float = 0.2, drain_timeout: float = 2.0) -> None:
        self.poll_interval = poll_interval
        # how long to wait for trailing output once the process has exited
        self.drain_timeout = drain_timeout

    def launch(
        self,
        argv: Sequence[str],
        *,
        env: Optional[Mapping[str, str]],
        cwd: Optional[Path],
        sink: BinaryIO,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        proc = subprocess.Popen(
            list(argv),
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=_NEW_SESSION,
        )
        stdout = cast(BinaryIO, proc.stdout)
        reader = threading.Thread(target=_pump, args=(stdout, sink), daemon=True)
        reader.start()

        try:
            while True:
                try:
                    return_code = proc.wait(timeout=self.poll_interval)
                    break
                except subprocess.TimeoutExpired:
                    if cancel_event is not None and cancel_event.is_set():
                        _kill(proc)
                        raise CommandCancelled(argv, "Cancelled")
        except KeyboardInterrupt as e:
            _kill(proc)
            raise CommandCancelled(argv, "Interrupted") from e
        finally:
            reader.join(timeout=self.drain_timeout)
            # A grandchild may still hold the pipe; close() would block on the
            # buffer lock while the reader sits in read1().
            if not reader.is_alive():
                stdout.close()
            else:
                logger.warning(
                    "Output of %s still open after exit; a child process may still be running",
                    argv[0] if argv else "<empty>",
                )

        return return_code


@dataclass
class LaunchRecord:
    argv: List[str]
    cwd: Optional[str]
    env: Dict[str, str] = field(default_factory=dict)


class RecordingLauncher(Launcher):
    """Records launches instead of executing them (dry-run and tests)."""

    def __init__(self, exit_code: int = 0, output: bytes = b"") -> None:
        self.exit_code = exit_code
        self.output = output
        self.launches: List[LaunchRecord] = []

    def launch(
        self,
        argv: Sequence[str],
        *,
        env: Optional[Mapping[str, str]],
        cwd: Optional[Path],
        sink: BinaryIO,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        self.launches.append(
            LaunchRecord(argv=list(argv), cwd=str(cwd) if cwd else None, env=dict(env or {}))
        )
        if self.output:
            sink.write(self.output)
        return self.exit_code
