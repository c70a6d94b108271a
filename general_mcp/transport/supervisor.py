"""Process Supervisor: spawns one MCP server and talks JSON-RPC over its stdio."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
from collections.abc import Callable
from typing import Any

from general_mcp.errors import (
    ProcessTerminated,
    RequestTimeout,
    SpawnFailed,
    TransportError,
)
from general_mcp.jsonrpc import RequestBuilder, notification
from general_mcp.models import ExecutionPlan, PlanSource, ProcessEvent, ProcessState
from general_mcp.planner import local_bin_dir
from general_mcp.transport.correlator import DEFAULT_MAX_BUFFER_BYTES, ResponseCorrelator

log = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 5.0
READ_CHUNK_SIZE = 4096

# Synthetic exit codes for children that never ran, shell conventions
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126

_UNSET: Any = object()


def _describe_returncode(returncode: int) -> tuple[int | None, str | None]:
    """Split asyncio's returncode into (exit code, signal name)."""
    if returncode >= 0:
        return returncode, None
    try:
        return None, signal.Signals(-returncode).name
    except ValueError:
        return None, f"SIG{-returncode}"


class McpProcess:
    """Owns a single MCP server child process and its three pipes.

    Typical use::

        async with McpProcess() as proc:
            await proc.start(plan)
            response = await proc.request("ping")

    Observers registered with :meth:`on` receive ``stderr`` chunks, unsolicited
    ``message`` values, one ``exit`` and transport ``error`` notifications.
    """

    def __init__(
        self,
        *,
        builder: RequestBuilder | None = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        request_timeout: float | None = None,
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.builder = builder or RequestBuilder()
        self.grace_period = grace_period
        self.request_timeout = request_timeout
        self.cwd = cwd
        self.env = env

        self.plan: ExecutionPlan | None = None
        self.pid: int | None = None
        self.exit_code: int | None = None
        self.exit_signal: str | None = None

        self._state = ProcessState.NOT_STARTED
        self._process: asyncio.subprocess.Process | None = None
        self._correlator = ResponseCorrelator(
            self._on_unsolicited, max_buffer_bytes=max_buffer_bytes
        )
        self._observers: dict[ProcessEvent, list[Callable[..., None]]] = {
            event: [] for event in ProcessEvent
        }
        self._write_lock = asyncio.Lock()
        self._start_done = asyncio.Event()
        self._exited = asyncio.Event()
        self._reader_tasks: list[asyncio.Task[None]] = []
        self._waiter_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def pending_ids(self) -> list[int | str]:
        return self._correlator.pending_ids

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def on(self, event: ProcessEvent | str, callback: Callable[..., None]) -> Callable[[], None]:
        """Register *callback* for *event*; returns a function that unregisters it."""
        observers = self._observers[ProcessEvent(event)]
        observers.append(callback)

        def unsubscribe() -> None:
            try:
                observers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def _emit(self, event: ProcessEvent, *args: Any) -> None:
        for callback in list(self._observers[event]):
            try:
                callback(*args)
            except Exception:
                log.exception("Observer for '%s' event failed", event.value)

    def _on_unsolicited(self, message: Any) -> None:
        self._emit(ProcessEvent.MESSAGE, message)

    def _fail(self, exc: TransportError) -> None:
        log.warning("Transport error: %s", exc)
        self._emit(ProcessEvent.ERROR, exc)
        self._correlator.reject_all(exc)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, plan: ExecutionPlan) -> None:
        """Spawn the server described by *plan* with all stdio piped.

        Raises ``SpawnFailed`` if the executable cannot be launched; the
        supervisor is then ``EXITED`` and is not retried.
        """
        if self._state is not ProcessState.NOT_STARTED:
            raise TransportError(f"Cannot start: process is {self._state.value}")

        self.plan = plan
        self._state = ProcessState.STARTING
        try:
            try:
                argv = plan.argv()
                if not argv:
                    raise FileNotFoundError("empty server command")
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=self.cwd,
                    env=self._spawn_env(plan),
                    # Own process group so npm/npx wrappers die with the server
                    start_new_session=True,
                )
            except (OSError, ValueError) as exc:
                code = EXIT_NOT_FOUND if isinstance(exc, FileNotFoundError) else EXIT_NOT_EXECUTABLE
                self.exit_code = code
                self._state = ProcessState.EXITED
                self._exited.set()
                err = SpawnFailed(plan, exc, code)
                log.error("%s", err)
                self._emit(ProcessEvent.ERROR, err)
                raise err from exc

            self._process = process
            self.pid = process.pid
            log.debug("Started %s (pid=%s, via %s)", argv, process.pid, plan.source.value)

            self._reader_tasks = [
                asyncio.create_task(
                    self._read_stdout(process.stdout),  # type: ignore[arg-type]
                    name=f"mcp-{process.pid}-stdout",
                ),
                asyncio.create_task(
                    self._read_stderr(process.stderr),  # type: ignore[arg-type]
                    name=f"mcp-{process.pid}-stderr",
                ),
            ]
            self._waiter_task = asyncio.create_task(
                self._wait_for_exit(process),
                name=f"mcp-{process.pid}-waiter",
            )
            self._state = ProcessState.RUNNING
        finally:
            self._start_done.set()

    async def close(self) -> None:
        """Close stdin, wait for a natural exit, then SIGTERM, then SIGKILL."""
        if self._state is ProcessState.STARTING:
            await self._start_done.wait()
        if self._state in (ProcessState.NOT_STARTED, ProcessState.EXITED):
            return
        if self._state is ProcessState.CLOSING:
            await self._exited.wait()
            return

        self._state = ProcessState.CLOSING
        proc = self._process
        if proc is None:
            raise TransportError("Cannot close: no process was spawned")

        if proc.stdin is not None:
            proc.stdin.close()
            try:
                await proc.stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                pass

        if await self._wait_exited(self.grace_period):
            return

        log.warning(
            "Server did not exit within %.1fs of stdin closing, sending SIGTERM",
            self.grace_period,
        )
        self._signal(signal.SIGTERM)
        if await self._wait_exited(self.grace_period):
            return

        log.warning("Server ignored SIGTERM, sending SIGKILL")
        self._signal(signal.SIGKILL)
        await self._exited.wait()

    async def __aenter__(self) -> McpProcess:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send(self, request: dict[str, Any], *, timeout: float | None = _UNSET) -> dict[str, Any]:
        """Write *request* as one JSON line and wait for the response with its id.

        Raises ``ProcessTerminated`` if the server exits first, ``TransportError``
        on pipe failures and ``RequestTimeout`` once *timeout* (default: the
        supervisor's ``request_timeout``) elapses.
        """
        self._check_running()
        request_id = request.get("id")
        line = (json.dumps(request) + "\n").encode("utf-8")

        # Registered before the write so an early reply always finds its waiter
        fut = self._correlator.register(request_id)  # type: ignore[arg-type]
        try:
            await self._write(line)
            if timeout is _UNSET:
                timeout = self.request_timeout
            if timeout is None:
                return await fut
            try:
                return await asyncio.wait_for(fut, timeout=timeout)
            except asyncio.TimeoutError:
                raise RequestTimeout(request_id, timeout) from None
        finally:
            self._correlator.discard(request_id, fut)  # type: ignore[arg-type]

    async def request(
        self, method: str, params: Any = None, *, timeout: float | None = _UNSET
    ) -> dict[str, Any]:
        """Build a request with this supervisor's id counter and send it."""
        return await self.send(self.builder.build(method, params), timeout=timeout)

    async def notify(self, method: str, params: Any = None) -> None:
        """Send a notification; nothing is awaited."""
        self._check_running()
        await self._write((json.dumps(notification(method, params)) + "\n").encode("utf-8"))

    def _check_running(self) -> None:
        if self._state is ProcessState.EXITED:
            raise ProcessTerminated(self.exit_code, self.exit_signal)
        if self._state is not ProcessState.RUNNING:
            raise TransportError(f"Cannot send: process is {self._state.value}")

    async def _write(self, data: bytes) -> None:
        # The lock keeps whole lines in call order
        async with self._write_lock:
            self._check_running()
            stdin = self._process.stdin  # type: ignore[union-attr]
            try:
                stdin.write(data)
                await stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                self._fail(TransportError(f"Failed to write to server stdin: {exc}"))
                return
            # asyncio closes the pipe on EPIPE without raising from write()
            if stdin.is_closing() and self._state is ProcessState.RUNNING:
                self._fail(TransportError("Failed to write to server stdin: pipe closed"))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _spawn_env(self, plan: ExecutionPlan) -> dict[str, str]:
        spawn_env = os.environ.copy()
        if self.env:
            spawn_env.update(self.env)
        if plan.source is PlanSource.LOCAL_BIN:
            bin_dir = str(local_bin_dir(self.cwd))
            spawn_env["PATH"] = os.pathsep.join(
                p for p in (bin_dir, spawn_env.get("PATH", "")) if p
            )
        return spawn_env

    def _signal(self, sig: signal.Signals) -> None:
        proc = self._process
        if proc is None or proc.returncode is not None:
            return
        try:
            os.killpg(os.getpgid(proc.pid), sig)
        except (ProcessLookupError, OSError):
            pass

    async def _wait_exited(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._exited.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _read_stdout(self, stream: asyncio.StreamReader) -> None:
        try:
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                try:
                    self._correlator.feed(chunk)
                except TransportError as exc:
                    self._fail(exc)
                except Exception as exc:
                    # The reader must outlive any bad chunk
                    log.exception("Failed to process server output")
                    self._fail(TransportError(f"Failed to process server output: {exc}"))
        except asyncio.CancelledError:
            pass
        except OSError as exc:
            self._fail(TransportError(f"Failed to read server stdout: {exc}"))

    async def _read_stderr(self, stream: asyncio.StreamReader) -> None:
        try:
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._emit(ProcessEvent.STDERR, chunk)
        except asyncio.CancelledError:
            pass

    async def _wait_for_exit(self, proc: asyncio.subprocess.Process) -> None:
        """Wait for exit, drain stdout, then fail whatever is still pending."""
        returncode = await proc.wait()

        # Replies written just before exit must still reach their callers.
        # A grandchild holding the pipe open must not stall shutdown though.
        try:
            results = await asyncio.wait_for(
                asyncio.gather(*self._reader_tasks, return_exceptions=True),
                timeout=self.grace_period,
            )
            for result in results:
                if isinstance(result, Exception):
                    log.error("Output reader failed: %r", result)
        except asyncio.TimeoutError:
            log.debug("Output pipes still open after exit, abandoning readers")
        finally:
            code, sig = _describe_returncode(returncode)
            self.exit_code = code
            self.exit_signal = sig
            self._state = ProcessState.EXITED
            self._correlator.reject_all(ProcessTerminated(code, sig))
            self._exited.set()

        log.debug("Server pid=%s exited (code=%s signal=%s)", proc.pid, code, sig)
        self._emit(ProcessEvent.EXIT, code, sig)
