"""Server Lifecycle — real uvicorn on an ephemeral port.

Invariants:
    - Bind failure raises ServerBindError before anything serves
    - stop_event, SIGTERM, and caller cancellation each drain and reach STOPPED
    - The shutdown hook runs exactly once per drain, never on a listener-closed exit
    - In-flight requests finish during the drain window
    - A drain that outlives shutdown_timeout raises ShutdownTimeoutError
    - Forced termination still runs the app lifespan shutdown and leaves no
      serve task running, including when run() is cancelled mid-drain
    - A client that disconnects cancels the route and its outbound call
    - A serve loop that never starts surfaces ServeError

Design Decisions:
    - Server and test client share one event loop: route handlers signal
      "request in flight" through asyncio.Event, no sleeps as synchronization
"""

import asyncio
import os
import signal
import socket
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi import FastAPI

from pokedex.core.errors import ServeError, ServerBindError, ShutdownTimeoutError
from pokedex.infrastructure.server import LifecycleManager, LifecycleState
from pokedex.main import create_app

from tests.fake_upstream import HangingUpstream, species_payload


# -- Helpers -------------------------------------------------------------------

class SlowApp:
    """Minimal app with a request that blocks until released."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.lifespan_closed = asyncio.Event()

        @asynccontextmanager
        async def lifespan(app):
            yield
            self.lifespan_closed.set()

        self.app = FastAPI(lifespan=lifespan)

        @self.app.get("/health")
        async def health():
            return {"status": "ok"}

        @self.app.get("/slow")
        async def slow():
            self.entered.set()
            await self.release.wait()
            return {"done": True}


def _manager(app, shutdown_timeout=2.0, hook_calls=None, **kwargs):
    def on_shutdown():
        if hook_calls is not None:
            hook_calls.append(1)

    return LifecycleManager(
        app, host="127.0.0.1", port=0,
        shutdown_timeout=shutdown_timeout, on_shutdown=on_shutdown, **kwargs,
    )


async def _wait_until_serving(port: int) -> None:
    async with httpx.AsyncClient(timeout=1.0) as http:
        for _ in range(100):
            try:
                res = await http.get(f"http://127.0.0.1:{port}/health")
                if res.status_code == 200:
                    return
            except httpx.TransportError:
                pass
            await asyncio.sleep(0.05)
    raise AssertionError("server did not start serving")


@asynccontextmanager
async def _running(manager, stop_event):
    manager.bind()
    task = asyncio.create_task(manager.run(stop_event))
    try:
        await _wait_until_serving(manager.port)
        yield task
    finally:
        if not task.done():
            stop_event.set()
            await asyncio.gather(task, return_exceptions=True)


# -- Binding -------------------------------------------------------------------

async def test_bind_failure_is_fatal():
    taken = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    taken.bind(("127.0.0.1", 0))
    taken.listen(1)
    try:
        port = taken.getsockname()[1]
        manager = LifecycleManager(SlowApp().app, host="127.0.0.1", port=port)
        with pytest.raises(ServerBindError):
            await manager.run()
        assert manager.state is LifecycleState.BINDING
    finally:
        taken.close()


async def test_port_zero_exposes_chosen_port():
    manager = _manager(SlowApp().app)
    manager.bind()
    assert manager.port > 0
    assert manager.bind() is manager.bind()
    manager._sock.close()


# -- Shutdown triggers ---------------------------------------------------------

async def test_stop_event_drains_and_stops():
    hook_calls: list[int] = []
    stop = asyncio.Event()
    manager = _manager(SlowApp().app, hook_calls=hook_calls)

    async with _running(manager, stop) as task:
        assert manager.state is LifecycleState.SERVING
        stop.set()
        assert await task is None

    assert manager.state is LifecycleState.STOPPED
    assert hook_calls == [1]


async def test_sigterm_drains_and_stops():
    hook_calls: list[int] = []
    stop = asyncio.Event()
    manager = _manager(SlowApp().app, hook_calls=hook_calls)

    async with _running(manager, stop) as task:
        os.kill(os.getpid(), signal.SIGTERM)
        assert await asyncio.wait_for(task, timeout=5) is None

    assert manager.received_signal == signal.SIGTERM
    assert manager.state is LifecycleState.STOPPED
    assert hook_calls == [1]


async def test_caller_cancellation_drains_then_propagates():
    hook_calls: list[int] = []
    stop = asyncio.Event()
    manager = _manager(SlowApp().app, hook_calls=hook_calls)

    async with _running(manager, stop) as task:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert manager.state is LifecycleState.STOPPED
    assert hook_calls == [1]


async def test_listener_closed_skips_drain():
    hook_calls: list[int] = []
    stop = asyncio.Event()
    manager = _manager(SlowApp().app, hook_calls=hook_calls)

    async with _running(manager, stop) as task:
        manager.server.should_exit = True
        assert await asyncio.wait_for(task, timeout=5) is None

    assert manager.state is LifecycleState.STOPPED
    assert hook_calls == []


async def test_run_twice_is_rejected():
    stop = asyncio.Event()
    manager = _manager(SlowApp().app)
    async with _running(manager, stop) as task:
        stop.set()
        await task
    with pytest.raises(RuntimeError):
        await manager.run()


# -- Draining ------------------------------------------------------------------

async def test_in_flight_request_completes_during_drain():
    slow = SlowApp()
    stop = asyncio.Event()
    manager = _manager(slow.app, shutdown_timeout=3.0)

    async with _running(manager, stop) as task:
        async with httpx.AsyncClient(timeout=5.0) as http:
            request = asyncio.create_task(
                http.get(f"http://127.0.0.1:{manager.port}/slow"),
            )
            await asyncio.wait_for(slow.entered.wait(), timeout=2)

            stop.set()
            await asyncio.sleep(0.2)
            assert manager.state is LifecycleState.DRAINING
            slow.release.set()

            res = await request
            assert res.status_code == 200
            assert res.json() == {"done": True}
        assert await task is None

    assert manager.state is LifecycleState.STOPPED


async def test_drain_past_timeout_reports_deadline_exceeded():
    slow = SlowApp()
    stop = asyncio.Event()
    manager = _manager(slow.app, shutdown_timeout=0.3)

    async with _running(manager, stop) as task:
        async with httpx.AsyncClient(timeout=5.0) as http:
            request = asyncio.create_task(
                http.get(f"http://127.0.0.1:{manager.port}/slow"),
            )
            await asyncio.wait_for(slow.entered.wait(), timeout=2)

            stop.set()
            with pytest.raises(ShutdownTimeoutError) as exc_info:
                await asyncio.wait_for(task, timeout=5)
            assert exc_info.value.timeout_seconds == 0.3
            assert manager._serve_task.done()
            assert slow.lifespan_closed.is_set()

            request.cancel()
            await asyncio.gather(request, return_exceptions=True)

    assert manager.state is LifecycleState.STOPPED


async def test_cancel_during_drain_forces_termination():
    slow = SlowApp()
    stop = asyncio.Event()
    manager = _manager(slow.app, shutdown_timeout=5.0)

    async with _running(manager, stop) as task:
        async with httpx.AsyncClient(timeout=5.0) as http:
            request = asyncio.create_task(
                http.get(f"http://127.0.0.1:{manager.port}/slow"),
            )
            await asyncio.wait_for(slow.entered.wait(), timeout=2)

            stop.set()
            await asyncio.sleep(0.2)
            assert manager.state is LifecycleState.DRAINING
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await asyncio.wait_for(task, timeout=5)

            request.cancel()
            await asyncio.gather(request, return_exceptions=True)

    assert manager.state is LifecycleState.STOPPED
    assert manager._serve_task.done()
    assert slow.lifespan_closed.is_set()


async def test_hook_failure_does_not_block_drain():
    def broken_hook():
        raise RuntimeError("cleanup failed")

    stop = asyncio.Event()
    manager = LifecycleManager(
        SlowApp().app, host="127.0.0.1", port=0, on_shutdown=broken_hook,
    )
    async with _running(manager, stop) as task:
        stop.set()
        assert await task is None
    assert manager.state is LifecycleState.STOPPED


# -- Serve failures ------------------------------------------------------------

async def test_startup_failure_is_serve_error():
    @asynccontextmanager
    async def failing_lifespan(app):
        raise RuntimeError("cannot start")
        yield

    manager = _manager(FastAPI(lifespan=failing_lifespan))
    with pytest.raises(ServeError):
        await asyncio.wait_for(manager.run(asyncio.Event()), timeout=5)
    assert manager.state is LifecycleState.STOPPED


# -- Full application ----------------------------------------------------------

async def test_full_app_serves_species_over_tcp(settings, upstream):
    upstream.species["mentwo"] = species_payload(
        name="mentwo", habitat="rare", is_legendary=True,
    )
    stop = asyncio.Event()
    manager = LifecycleManager.from_settings(
        create_app(settings, transport=upstream.transport), settings,
    )
    manager.host = "127.0.0.1"

    async with _running(manager, stop) as task:
        async with httpx.AsyncClient(timeout=5.0) as http:
            res = await http.get(
                f"http://127.0.0.1:{manager.port}/api/pokemon/mentwo",
            )
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["name"] == "mentwo"
        assert data["isLegendary"] is True
        stop.set()
        assert await task is None


async def test_client_disconnect_cancels_outbound_call(settings):
    hanging = HangingUpstream()
    stop = asyncio.Event()
    manager = LifecycleManager.from_settings(
        create_app(settings, transport=hanging.transport), settings,
    )
    manager.host = "127.0.0.1"

    async with _running(manager, stop) as task:
        reader, writer = await asyncio.open_connection("127.0.0.1", manager.port)
        writer.write(
            b"GET /api/pokemon/pikachu HTTP/1.1\r\nHost: pokedex.test\r\n\r\n",
        )
        await writer.drain()
        await asyncio.wait_for(hanging.entered.wait(), timeout=2)

        writer.close()
        await writer.wait_closed()
        await asyncio.wait_for(hanging.cancelled.wait(), timeout=2)

        stop.set()
        assert await task is None
