"""Subprocess runner for the external AI command-line tool."""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from collections.abc import Sequence

from taskforge.bridge.errors import ProcessError, ProcessTimeoutError, SpawnError

logger = logging.getLogger(__name__)

DEFAULT_CLI_COMMAND = "claude"
_TERMINATE_GRACE_SECONDS = 2
_STDERR_PREVIEW_CHARS = 2_000
_POSIX = os.name != "nt"


class ProcessExecutor:
    """Run one CLI invocation with piped stdio and a deadline."""

    def __init__(self, command: Sequence[str] = (DEFAULT_CLI_COMMAND,)) -> None:
        if not command or not command[0].strip():
            raise ValueError("CLI command must not be empty.")
        self.command = tuple(command)

    @classmethod
    def from_command_line(cls, command_line: str) -> ProcessExecutor:
        """Build an executor from a shell-style command, e.g. ``python -m tool``."""

        argv = shlex.split(command_line)
        if not argv:
            raise ValueError("CLI command must not be empty.")
        return cls(argv)

    @property
    def executable(self) -> str:
        return self.command[0]

    def execute(
        self,
        args: Sequence[str],
        input_payload: str = "",
        deadline_ms: int | None = None,
    ) -> str:
        """Run the CLI and return its stdout.

        ``input_payload`` is written to stdin, which is then closed. A
        ``deadline_ms`` of ``None`` or ``<= 0`` disables the timeout.
        """

        argv = [*self.command, *args]
        timeout_seconds = None
        if deadline_ms is not None and deadline_ms > 0:
            timeout_seconds = deadline_ms / 1000
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=_POSIX,
            )
        except FileNotFoundError as error:
            raise SpawnError(
                f"CLI executable not found: {self.executable}",
                executable=self.executable,
            ) from error
        except OSError as error:
            raise SpawnError(
                f"CLI executable failed to start: {error}",
                executable=self.executable,
            ) from error

        logger.debug("Started %s pid=%s deadline_ms=%s", self.executable, process.pid, deadline_ms)
        try:
            stdout, stderr = process.communicate(input=input_payload, timeout=timeout_seconds)
        except subprocess.TimeoutExpired as error:
            _terminate_process(process)
            logger.warning(
                "CLI %s timed out after %sms, pid=%s terminated",
                self.executable,
                deadline_ms,
                process.pid,
            )
            raise ProcessTimeoutError(
                f"CLI command timed out after {deadline_ms}ms",
                deadline_ms=int(deadline_ms or 0),
                pid=process.pid,
            ) from error
        except BaseException:
            _terminate_process(process)
            raise

        returncode = process.returncode
        logger.debug("CLI %s exited with code %s", self.executable, returncode)
        if returncode != 0:
            stderr_text = (stderr or "").strip()
            detail = f": {stderr_text[:_STDERR_PREVIEW_CHARS]}" if stderr_text else ""
            raise ProcessError(
                f"CLI exited with code {returncode}{detail}",
                exit_code=returncode,
                stderr=stderr or "",
            )
        return stdout or ""


def _terminate_process(process: subprocess.Popen[str]) -> None:
    """Stop the CLI and everything it spawned, then release its pipes.

    Waits are bounded by the grace period even when helpers hold the pipes open.
    """

    _signal_process_group(process, kill=False)
    try:
        process.wait(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        _signal_process_group(process, kill=True)
        try:
            process.wait(timeout=_TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("CLI pid=%s did not exit after kill", process.pid)
    # Sweep helpers that outlived the leader.
    _signal_process_group(process, kill=True)
    for stream in (process.stdin, process.stdout, process.stderr):
        if stream is None:
            continue
        try:
            stream.close()
        except OSError:
            continue


def _signal_process_group(process: subprocess.Popen[str], *, kill: bool) -> None:
    try:
        if _POSIX:
            os.killpg(process.pid, signal.SIGKILL if kill else signal.SIGTERM)
        elif kill:
            process.kill()
        else:
            process.terminate()
    except OSError:
        return
