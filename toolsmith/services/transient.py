"""Lifecycle wrapper for short-lived background processes.

Typical use is a helper daemon that an install step needs for a moment (a
local registry, a socket-activated agent):

    with transient_service(["dockerd", "--data-root", tmp], lambda: file_exists(sock)):
        ...

The process is spawned, ``ready()`` is polled until it returns True or the
timeout expires, and the process must stay alive while polling. Teardown
(terminate, kill after a grace period, delete temp files) runs on every exit
path: success, task failure, readiness timeout and spawn failure.
"""

from __future__ import annotations

import logging
import socket
import subprocess
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Literal

from toolsmith.core.errors import ToolsmithError

__all__ = [
    "ServiceHandle",
    "TransientServiceError",
    "file_exists",
    "port_open",
    "run_with_service",
    "transient_service",
]

logger = logging.getLogger(__name__)

type ServiceErrorKind = Literal["spawn_failed", "exited_early", "not_ready"]

DEFAULT_READY_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 0.05
DEFAULT_GRACE = 2.0


class TransientServiceError(ToolsmithError):
    """The service could not be brought up.

    Attributes:
        kind: ``spawn_failed``, ``exited_early`` or ``not_ready``
        returncode: Exit code when the process died before becoming ready
    """

    def __init__(
        self, kind: ServiceErrorKind, message: str, *, returncode: int | None = None
    ) -> None:
        self.kind: ServiceErrorKind = kind
        self.message = message
        self.returncode = returncode
        super().__init__(f"{kind}: {message}")


class ServiceHandle:
    """A running background process plus the temp files it owns."""

    def __init__(
        self,
        proc: subprocess.Popen[bytes],
        argv: Sequence[str],
        temp_files: Sequence[Path] = (),
    ) -> None:
        self._proc = proc
        self._argv = tuple(argv)
        self._temp_files = tuple(temp_files)

    @property
    def proc(self) -> subprocess.Popen[bytes]:
        return self._proc

    @property
    def argv(self) -> tuple[str, ...]:
        return self._argv

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def temp_files(self) -> tuple[Path, ...]:
        return self._temp_files

    def alive(self) -> bool:
        return self._proc.poll() is None

    def stop(self, grace: float = DEFAULT_GRACE) -> None:
        """Terminate, then kill if the process outlives ``grace`` seconds."""
        p = self._proc
        if p.poll() is not None:
            return

        try:
            p.terminate()
        except OSError:
            return

        try:
            p.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.debug("%s ignored SIGTERM, killing", self._argv[0])
            try:
                p.kill()
            except OSError:
                return
            try:
                p.wait(timeout=grace)
            except subprocess.TimeoutExpired:
                logger.warning("%s (pid %d) did not exit after kill", self._argv[0], p.pid)


def _remove_temp_files(paths: Sequence[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)


def _wait_ready(
    handle: ServiceHandle,
    ready: Callable[[], bool],
    *,
    timeout: float,
    poll_interval: float,
    clock: Callable[[], float],
    sleep: Callable[[float], None],
) -> None:
    deadline = clock() + timeout
    while True:
        if not handle.alive():
            code = handle.proc.returncode
            raise TransientServiceError(
                "exited_early",
                f"{handle.argv[0]} exited before becoming ready (code {code})",
                returncode=code,
            )
        if ready():
            return
        if clock() >= deadline:
            raise TransientServiceError(
                "not_ready", f"{handle.argv[0]} not ready after {timeout:g}s"
            )
        sleep(poll_interval)


@contextmanager
def transient_service(
    argv: Sequence[str],
    ready: Callable[[], bool],
    *,
    timeout: float = DEFAULT_READY_TIMEOUT,
    temp_files: Sequence[Path] = (),
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    grace: float = DEFAULT_GRACE,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[ServiceHandle]:
    """Run ``argv`` in the background for the duration of the ``with`` block.

    Raises:
        TransientServiceError: Spawn failed, the process exited early, or
            ``ready()`` never returned True within ``timeout``.
    """
    if not argv:
        raise ValueError("argv cannot be empty")

    handle: ServiceHandle | None = None
    try:
        try:
            proc = subprocess.Popen(
                list(argv),
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            raise TransientServiceError("spawn_failed", f"failed to start {argv[0]}: {e}") from e

        handle = ServiceHandle(proc, argv, temp_files)
        logger.debug("Started %s (pid %d)", argv[0], proc.pid)
        _wait_ready(
            handle,
            ready,
            timeout=timeout,
            poll_interval=poll_interval,
            clock=clock,
            sleep=sleep,
        )
        yield handle
    finally:
        if handle is not None:
            handle.stop(grace)
        _remove_temp_files(temp_files)


def run_with_service[T](
    argv: Sequence[str],
    ready: Callable[[], bool],
    task: Callable[[ServiceHandle], T],
    *,
    timeout: float = DEFAULT_READY_TIMEOUT,
    temp_files: Sequence[Path] = (),
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    grace: float = DEFAULT_GRACE,
) -> T:
    """Bring the service up, run ``task`` against it, and always tear down."""
    with transient_service(
        argv,
        ready,
        timeout=timeout,
        temp_files=temp_files,
        poll_interval=poll_interval,
        grace=grace,
    ) as handle:
        return task(handle)


def port_open(port: int, host: str = "127.0.0.1", *, timeout: float = 0.1) -> bool:
    """Readiness check: a TCP connect succeeds."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def file_exists(path: Path) -> bool:
    """Readiness check: a file (socket, pid file) has appeared."""
    return path.exists()
