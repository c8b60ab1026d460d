"""Shelling out to package managers and tools.

``run`` captures output and hands back ``Result[str, ProcessError]`` so
callers branch on a value rather than catching ``CalledProcessError``.
Commands run non-interactively with a C locale: package managers must never
stop at a prompt, and ``--version`` output must not be translated.

``CommandRunner`` is the seam the engine shells out through, so tests can
substitute a fake that records argv.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from toolsmith.core.result import Err, Ok, Result

__all__ = [
    "NONINTERACTIVE_ENV",
    "ProcessError",
    "CommandRunner",
    "SubprocessRunner",
    "command_env",
    "run",
    "run_interactive",
    "is_root",
]

logger = logging.getLogger(__name__)

NONINTERACTIVE_ENV: Mapping[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
    "HOMEBREW_NO_AUTO_UPDATE": "1",
    "LC_ALL": "C",
}


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run or exited non-zero.

    Attributes:
        command: argv as executed
        returncode: Exit status, -1 when the process never started or timed out
        stdout: Captured standard output
        stderr: Captured standard error, or the reason it never ran
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        head = " ".join(self.command[:3])
        if len(self.command) > 3:
            head += " ..."
        return f"{head} failed (exit {self.returncode})"

    @property
    def detail(self) -> str:
        """Last non-empty stderr line, falling back to stdout."""
        for text in (self.stderr, self.stdout):
            lines = [line.strip() for line in text.splitlines() if line.strip()]
            if lines:
                return lines[-1]
        return ""


def command_env(
    overrides: Mapping[str, str] = NONINTERACTIVE_ENV,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """The current environment (or ``base``) with ``overrides`` applied."""
    env = dict(os.environ if base is None else base)
    env.update(overrides)
    return env


def run(
    cmd: list[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    input: str | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` to completion and return its stdout.

    ``env`` replaces the environment entirely; None inherits it.
    """
    argv = tuple(cmd)
    logger.debug("$ %s", shlex.join(argv))
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            input=input,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(argv, -1, partial, f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(argv, -1, "", str(e)))

    if proc.returncode != 0:
        logger.debug("%s exited %d", argv[0], proc.returncode)
        return Err(ProcessError(argv, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)


def run_interactive(cmd: list[str]) -> int:
    """Run attached to the terminal and return the exit status.

    A command that cannot be started returns 127, as a shell would.
    """
    logger.debug("$ %s", shlex.join(cmd))
    try:
        return subprocess.run(cmd, check=False).returncode
    except OSError as e:
        logger.debug("Could not start %s: %s", cmd[0], e)
        return 127


class CommandRunner(Protocol):
    def run(
        self,
        args: list[str],
        *,
        input: str | None = None,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]: ...


class SubprocessRunner:
    """Runs commands for real, with ``NONINTERACTIVE_ENV`` (or ``env_overrides``) applied."""

    def __init__(self, env_overrides: Mapping[str, str] = NONINTERACTIVE_ENV) -> None:
        self._env_overrides = dict(env_overrides)

    def run(
        self,
        args: list[str],
        *,
        input: str | None = None,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        return run(args, env=command_env(self._env_overrides), input=input, timeout=timeout)


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0
