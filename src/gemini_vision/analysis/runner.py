"""Subprocess execution of the Gemini CLI.

Each call owns exactly one child process. The child is killed and reaped on
every exit path (success, failure, timeout, cancellation).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
import shutil
import sys
from pathlib import Path

from gemini_vision.analysis.errors import map_child_process_error, map_process_error
from gemini_vision.analysis.types import RawInvocationResult

logger = logging.getLogger(__name__)


class ProcessRunner:
    """Run CLI invocations as isolated child processes with a timeout."""

    def __init__(
        self,
        command: list[str] | str = "npx",
        *,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._command = _resolve_command(_normalize_command(command))
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._timeout_seconds = float(timeout_seconds)

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    @property
    def timeout_ms(self) -> int:
        return round(self._timeout_seconds * 1000)

    async def run(self, args: list[str]) -> str:
        """Run the CLI and return its trimmed stdout.

        Raises:
            AnalysisError: classified from stderr on a non-zero exit, or from
                the process error on spawn failure and timeout.
        """
        raw = await self.invoke(args)
        if raw.success:
            return raw.stdout.strip()
        logger.debug(
            "cli_exit_nonzero",
            extra={"process.exit_code": raw.exit_code, "process.stderr": raw.stderr},
        )
        raise map_child_process_error(raw.stderr, raw.stdout, raw.exit_code)

    async def invoke(self, args: list[str]) -> RawInvocationResult:
        """Spawn the CLI and capture both output streams."""
        argv = [*self._command, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning(
                "cli_spawn_failed",
                extra={"process.command": argv[0], "error.message": str(e)},
            )
            raise map_process_error(e) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as e:
            logger.warning(
                "cli_timed_out",
                extra={"process.pid": proc.pid, "timeout.ms": self.timeout_ms},
            )
            raise map_process_error(e, timeout_ms=self.timeout_ms) from None
        finally:
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        return RawInvocationResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=proc.returncode,
        )


def _normalize_command(command: list[str] | str) -> list[str]:
    if isinstance(command, str):
        parts = shlex.split(command)
    elif isinstance(command, list):
        parts = [str(item).strip() for item in command if str(item).strip()]
    else:
        raise ValueError("runner command must be a string or list of strings")
    if not parts:
        raise ValueError("runner command is required")
    return parts


def _resolve_command(parts: list[str]) -> list[str]:
    executable = parts[0]
    if Path(executable).is_absolute() or os.path.sep in executable:
        return parts

    found = shutil.which(executable)
    if found:
        return [found, *parts[1:]]

    python_bin_dir = Path(sys.executable).resolve().parent
    candidate = python_bin_dir / executable
    if candidate.exists() and os.access(candidate, os.X_OK):
        return [str(candidate), *parts[1:]]

    return parts
