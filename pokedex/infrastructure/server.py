"""Server Lifecycle — bind, serve, and bounded graceful shutdown around uvicorn.

Invariants:
    - States advance BINDING -> SERVING -> DRAINING -> STOPPED, never backwards
    - Bind failure raises ServerBindError and is never retried
    - The serve loop runs in its own task; the controller waits on the first of
      stop_event, SIGINT/SIGTERM, or the serve task exiting
    - The on_shutdown hook runs exactly once, on entry to DRAINING
    - A drain that misses shutdown_timeout raises ShutdownTimeoutError; the whole
      drain is bounded by shutdown_timeout + SAFETY_MARGIN_SECONDS
    - Signal handlers installed here are removed before run() returns
    - STOPPED is set only once the serve task has finished; a forced stop also
      sends the app lifespan shutdown so app-owned clients are closed

Design Decisions:
    - Pre-bound socket handed to uvicorn: bind errors surface before any task
      starts, and port 0 exposes the chosen port to callers
    - uvicorn's own signal capture disabled (_ManagedServer) so SIGINT/SIGTERM
      feed the same first-of-three wait as caller cancellation
    - Forced termination: after the window, force_exit + cancel request tasks,
      then one safety margin before the serve task itself is cancelled
    - A drain interrupted by cancelling run() goes straight to forced
      termination instead of being shielded
"""

import asyncio
import contextlib
import logging
import signal
import socket
import sys
import threading
from collections.abc import Callable
from enum import Enum

import uvicorn

from pokedex.config import Settings
from pokedex.core.errors import ServeError, ServerBindError, ShutdownTimeoutError

logger = logging.getLogger(__name__)

SAFETY_MARGIN_SECONDS = 1.0
LISTEN_BACKLOG = 2048
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(str, Enum):
    """Serving lifetime of one LifecycleManager."""
    BINDING = "binding"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


class _ManagedServer(uvicorn.Server):
    """uvicorn server whose signals are owned by LifecycleManager."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class LifecycleManager:
    """Owns the listen socket and the serve task for one process lifetime."""

    def __init__(
        self,
        app,
        *,
        host: str = "0.0.0.0",  # nosec B104
        port: int = 8080,
        shutdown_timeout: float = 5.0,
        on_shutdown: Callable[[], None] | None = None,
        handle_signals: bool = True,
    ):
        self.app = app
        self.host = host
        self.requested_port = port
        self.shutdown_timeout = shutdown_timeout
        self.on_shutdown = on_shutdown
        self.handle_signals = handle_signals
        self.state = LifecycleState.BINDING
        self.received_signal: signal.Signals | None = None
        self.server: uvicorn.Server | None = None
        self._sock: socket.socket | None = None
        self._serve_task: asyncio.Task | None = None
        self._hook_called = False

    @classmethod
    def from_settings(
        cls, app, settings: Settings, on_shutdown: Callable[[], None] | None = None,
    ) -> "LifecycleManager":
        return cls(
            app,
            host=settings.host,
            port=settings.port,
            shutdown_timeout=settings.shutdown_timeout_seconds,
            on_shutdown=on_shutdown,
        )

    @property
    def port(self) -> int:
        """Actual bound port (differs from the requested one when that was 0)."""
        if self._sock is None:
            raise RuntimeError("listener not bound")
        return self._sock.getsockname()[1]

    # ─── BINDING ───────────────────────────────────────────────────

    def bind(self) -> socket.socket:
        """Acquire the listen socket. Idempotent; raises ServerBindError on failure."""
        if self._sock is not None:
            return self._sock
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.requested_port))
            sock.listen(LISTEN_BACKLOG)
        except OSError as e:
            sock.close()
            raise ServerBindError(self.host, self.requested_port, str(e)) from e
        self._sock = sock
        logger.info(f"Listener bound on {self.host}:{self.port}")
        return sock

    # ─── SERVING ───────────────────────────────────────────────────

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Serve until a shutdown trigger fires, then drain.

        Returns None on a clean stop. Raises ServerBindError, ServeError,
        or ShutdownTimeoutError. Cancelling the task running this coroutine
        counts as caller cancellation: the server drains, then the
        CancelledError propagates.
        """
        if self.state is not LifecycleState.BINDING:
            raise RuntimeError("LifecycleManager.run() can only be called once")
        sock = self.bind()

        self.server = _ManagedServer(uvicorn.Config(
            self.app, host=self.host, port=self.port,
            lifespan="on", log_config=None,
        ))
        stop_event = stop_event or asyncio.Event()
        signal_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop, signal_event)

        serve_task = asyncio.create_task(
            self.server.serve(sockets=[sock]), name="pokedex-serve",
        )
        self._serve_task = serve_task
        stop_waiter = asyncio.create_task(stop_event.wait())
        signal_waiter = asyncio.create_task(signal_event.wait())
        self._set_state(LifecycleState.SERVING)

        try:
            try:
                done, _ = await asyncio.wait(
                    {serve_task, stop_waiter, signal_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            except asyncio.CancelledError:
                await self._drain(serve_task, "caller cancelled run")
                raise

            if serve_task in done:
                self._raise_for_serve_exit(serve_task)
                logger.info("Serve loop closed the listener")
                return
            if stop_waiter in done:
                reason = "stop requested"
            else:
                reason = f"received {self.received_signal.name}"
            await self._drain(serve_task, reason)
        finally:
            if not serve_task.done():
                logger.warning("Drain interrupted, forcing termination")
                await self._terminate(serve_task)
            stop_waiter.cancel()
            signal_waiter.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)
            sock.close()
            self._set_state(LifecycleState.STOPPED)

    def _install_signal_handlers(
        self, loop: asyncio.AbstractEventLoop, event: asyncio.Event,
    ) -> list[signal.Signals]:
        """Route SIGINT/SIGTERM into `event` (main thread, POSIX only)."""
        if (
            not self.handle_signals
            or sys.platform == "win32"
            or threading.current_thread() is not threading.main_thread()
        ):
            return []
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self._on_signal, sig, event)
        return list(SHUTDOWN_SIGNALS)

    def _on_signal(self, sig: signal.Signals, event: asyncio.Event) -> None:
        logger.info(f"Received {sig.name}, shutting down")
        self.received_signal = sig
        event.set()

    def _raise_for_serve_exit(self, serve_task: asyncio.Task) -> None:
        """Graceful close -> return; anything else -> ServeError."""
        if serve_task.cancelled():
            raise ServeError("serve task was cancelled")
        exc = serve_task.exception()
        if exc is not None:
            raise ServeError(repr(exc)) from exc
        if not self.server.started:
            raise ServeError("server failed to start")

    # ─── DRAINING ──────────────────────────────────────────────────

    async def _drain(self, serve_task: asyncio.Task, reason: str) -> None:
        """Stop accepting, finish in-flight requests within the shutdown window."""
        self._set_state(LifecycleState.DRAINING)
        logger.info(f"Draining: {reason}")
        self._run_shutdown_hook()
        self.server.should_exit = True

        done, _ = await asyncio.wait({serve_task}, timeout=self.shutdown_timeout)
        if serve_task in done:
            self._raise_for_serve_exit(serve_task)
            return

        logger.error(
            f"Drain exceeded {self.shutdown_timeout}s, forcing termination",
        )
        await self._terminate(serve_task)
        raise ShutdownTimeoutError(self.shutdown_timeout)

    async def _terminate(self, serve_task: asyncio.Task) -> None:
        """Force the serve task down, then run the app lifespan shutdown.

        Bounded by SAFETY_MARGIN_SECONDS. uvicorn skips lifespan shutdown once
        force_exit is set, so it is sent here to release app-owned resources.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + SAFETY_MARGIN_SECONDS
        self._force_exit()
        done, _ = await asyncio.wait({serve_task}, timeout=SAFETY_MARGIN_SECONDS)
        if not done:
            serve_task.cancel()
            await asyncio.gather(serve_task, return_exceptions=True)
        if not self.server.started:
            return
        try:
            await asyncio.wait_for(
                self.server.lifespan.shutdown(),
                timeout=max(deadline - loop.time(), 0),
            )
        except asyncio.TimeoutError:
            logger.warning("App lifespan shutdown did not finish after forced termination")

    def _force_exit(self) -> None:
        self.server.force_exit = True
        for task in list(self.server.server_state.tasks):
            task.cancel()

    def _run_shutdown_hook(self) -> None:
        if self._hook_called or self.on_shutdown is None:
            return
        self._hook_called = True
        try:
            self.on_shutdown()
        except Exception as e:
            logger.error(f"Shutdown hook failed: {e}", exc_info=True)

    def _set_state(self, state: LifecycleState) -> None:
        self.state = state
        logger.info(f"Lifecycle state: {state.value}", extra={"state": state.value})
