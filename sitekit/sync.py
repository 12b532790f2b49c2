"""Waiting on child processes and sockets, with interruption."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass
from typing import TypeVar

from .logger import TRACE

log = logging.getLogger(__name__)

T = TypeVar("T")

_SOCKET_ATTEMPTS = 20
_SOCKET_DELAY = 0.5


@dataclass(frozen=True)
class ProcessOutput:
    """Exit code and captured output of a finished process."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    def has_stderr(self) -> bool:
        log.debug("stderr: %d\n%r", len(self.stderr), self.stderr_text())
        return len(self.stderr) > 1

    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    def has_stdout(self) -> bool:
        return len(self.stdout) > 1


class CommandStatus(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class CommandResult:
    """How a command ended, with its output when it was captured."""

    status: CommandStatus
    output: ProcessOutput | None = None


async def _race(work: Awaitable[T], interrupt: asyncio.Event) -> tuple[bool, T | None]:
    """Run ``work`` until it finishes or ``interrupt`` is set."""
    main = asyncio.ensure_future(work)
    stop = asyncio.ensure_future(interrupt.wait())
    try:
        await asyncio.wait({main, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
    if main.done():
        return True, main.result()
    main.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await main
    return False, None


async def _kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()


async def wait_interruptible(
    name: str, process: asyncio.subprocess.Process, interrupt: asyncio.Event
) -> CommandResult:
    """Wait for ``process``; kill it if ``interrupt`` is set first."""
    finished, returncode = await _race(process.wait(), interrupt)
    if not finished:
        try:
            await _kill(process)
        except OSError as exc:
            raise OSError("Could not kill process") from exc
        log.log(TRACE, "%s process interrupted", name)
        return CommandResult(CommandStatus.INTERRUPTED)
    if returncode == 0:
        log.log(TRACE, "%s process finished with success", name)
        return CommandResult(CommandStatus.SUCCESS)
    log.log(TRACE, "%s process finished with code %s", name, returncode)
    return CommandResult(CommandStatus.FAILURE)


async def wait_piped_interruptible(
    name: str,
    args: Sequence[str],
    interrupt: asyncio.Event,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``args`` capturing its output; kill it if ``interrupt`` is set first."""
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=None if env is None else dict(env),
    )
    try:
        finished, streams = await _race(process.communicate(), interrupt)
    except BaseException:
        await _kill(process)
        raise
    if not finished:
        await _kill(process)
        log.log(TRACE, "%s process interrupted", name)
        return CommandResult(CommandStatus.INTERRUPTED)
    stdout, stderr = streams
    output = ProcessOutput(process.returncode, stdout or b"", stderr or b"")
    if output.returncode == 0:
        log.log(TRACE, "%s process finished with success", name)
        return CommandResult(CommandStatus.SUCCESS, output)
    log.log(TRACE, "%s process finished with code %s", name, output.returncode)
    return CommandResult(CommandStatus.FAILURE, output)


async def wait_for_socket(name: str, host: str, port: int) -> bool:
    """Poll until a TCP connection to ``host:port`` succeeds, for up to ten seconds."""
    for _ in range(_SOCKET_ATTEMPTS):
        try:
            _reader, writer = await asyncio.open_connection(host, port)
        except OSError:
            await asyncio.sleep(_SOCKET_DELAY)
            continue
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
        log.debug("%s server port %s:%s open", name, host, port)
        return True
    log.warning("%s timed out waiting for port %s:%s", name, host, port)
    return False