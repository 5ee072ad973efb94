"""Execution engine: runs a task's command as an isolated subprocess."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
import shlex
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ulid import ULID

from taskkit.core.exceptions import ExecutionFault, NotFoundError, UnsafeCommandError
from taskkit.core.logging import get_logger
from taskkit.core.types import utc_now

from .schemas import TaskExecutionOut, TaskOut
from .store import TaskStore
from .validator import ensure_safe

logger = get_logger(__name__)

TRUNCATION_MARKER = "\n[output truncated]"
READ_CHUNK_SIZE = 4096


def timeout_marker(timeout: float) -> str:
    """Text appended to the output of a run terminated at the timeout."""
    return f"\n[timed out after {timeout:g}s]"


def split_command(command: str) -> list[str]:
    """Split a command into argv using POSIX shell quoting rules, without a shell."""
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise ExecutionFault(f"Command could not be parsed: {e}") from e
    if not argv:
        raise ExecutionFault("Command is empty")
    return argv


class OutputCapture:
    """Accumulates decoded process output up to a character limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.truncated = False
        self._parts: list[str] = []
        self._size = 0
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, data: bytes, *, final: bool = False) -> None:
        text = self._decoder.decode(data, final=final)
        if not text:
            return
        room = self.limit - self._size
        if room <= 0:
            self.truncated = True
            return
        if len(text) > room:
            text = text[:room]
            self.truncated = True
        self._parts.append(text)
        self._size += len(text)

    async def drain(self, stream: asyncio.StreamReader) -> None:
        """Read the stream to EOF; bytes past the limit are read and discarded."""
        while chunk := await stream.read(READ_CHUNK_SIZE):
            self.feed(chunk)
        self.feed(b"", final=True)

    def text(self) -> str:
        output = "".join(self._parts)
        if self.truncated:
            output += TRUNCATION_MARKER
        return output


def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill the process group started for the command."""
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)


@asynccontextmanager
async def spawn(argv: list[str]) -> AsyncIterator[asyncio.subprocess.Process]:
    """Launch argv directly (no shell); its whole process group is killed on exit."""
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )
    except OSError as e:
        raise ExecutionFault(f"Could not launch '{argv[0]}': {e.strerror or e}") from e

    try:
        yield process
    finally:
        # Descendants may outlive the direct child and still hold the pipe
        _terminate(process)
        await process.wait()


class ExecutionEngine:
    """Runs task commands and appends the resulting execution records."""

    def __init__(
        self,
        store: TaskStore,
        *,
        timeout: float = 60.0,
        max_output_chars: int = 100_000,
        max_concurrency: int = 4,
    ) -> None:
        """Initialize engine with its store and per-run limits."""
        self.store = store
        self.timeout = timeout
        self.max_output_chars = max_output_chars
        self.max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency)
        self._active = 0

    @property
    def active_executions(self) -> int:
        """Number of commands currently running."""
        return self._active

    async def execute(self, task_id: ULID | str) -> TaskExecutionOut:
        """Run the task once and return its new execution record."""
        execution, _ = await self._execute(task_id)
        return execution

    async def execute_task(self, task_id: ULID | str) -> TaskOut:
        """Run the task once and return the task with its updated history."""
        _, task = await self._execute(task_id)
        return task

    async def _execute(self, task_id: ULID | str) -> tuple[TaskExecutionOut, TaskOut]:
        task = await self.store.get(task_id)

        # The stored command is checked again in case storage was altered behind the store
        try:
            ensure_safe(task.command)
        except UnsafeCommandError as e:
            logger.error("execution.rejected_unsafe", task_id=str(task.id), characters=e.characters)
            raise

        argv = split_command(task.command)

        async with self._slots:
            self._active += 1
            try:
                execution = await self._run(task.id, argv)
            finally:
                self._active -= 1

        try:
            updated = await self.store.append_execution(task.id, execution)
        except NotFoundError:
            logger.warning(
                "execution.record_dropped",
                task_id=str(task.id),
                reason="task deleted while its command was running",
            )
            raise

        return execution, updated

    async def _run(self, task_id: ULID, argv: list[str]) -> TaskExecutionOut:
        capture = OutputCapture(self.max_output_chars)
        exit_code: int | None = None
        timed_out = False

        start_time = utc_now()
        try:
            async with spawn(argv) as process:
                logger.info("execution.started", task_id=str(task_id), program=argv[0], pid=process.pid)
                stdout = process.stdout
                assert stdout is not None  # For type checker

                async def communicate() -> int:
                    await capture.drain(stdout)
                    return await process.wait()

                try:
                    exit_code = await asyncio.wait_for(communicate(), timeout=self.timeout)
                except TimeoutError:
                    timed_out = True
                    exit_code = process.returncode
                    logger.warning("execution.timed_out", task_id=str(task_id), timeout=self.timeout)
        except ExecutionFault as e:
            logger.error("execution.launch_failed", task_id=str(task_id), program=argv[0], error=e.message)
            raise
        end_time = utc_now()

        output = capture.text()
        if timed_out:
            output += timeout_marker(self.timeout)

        logger.info(
            "execution.completed",
            task_id=str(task_id),
            exit_code=exit_code,
            timed_out=timed_out,
            duration_ms=round((end_time - start_time).total_seconds() * 1000, 2),
            output_chars=len(output),
        )
        return TaskExecutionOut(
            start_time=start_time,
            end_time=end_time,
            output=output,
            exit_code=exit_code,
            timed_out=timed_out,
        )
