"""Shared fixtures for json2yaml tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from json2yaml.server.lifecycle import SessionLifecycle
from json2yaml.server.supervisor import ServerSupervisor
from json2yaml.types import Json2YamlConfig, LifecycleConfig, ServerConfig


class FakeClock:
    """Manually advanced clock with scheduled callbacks.

    ``sleep`` is a drop-in for ``asyncio.sleep``: it runs every callback
    scheduled inside the slept interval at its own timestamp, then jumps to
    the end of the interval and yields to the event loop once.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self._events: list[tuple[float, Callable[[], None]]] = []

    def __call__(self) -> float:
        return self.now

    def at(self, when: float, fn: Callable[[], None]) -> None:
        self._events.append((when, fn))
        self._events.sort(key=lambda e: e[0])

    def every(self, start: float, stop: float, step: float, fn: Callable[[], None]) -> None:
        count = int(round((stop - start) / step))
        for i in range(count + 1):
            self.at(start + i * step, fn)

    async def sleep(self, delay: float) -> None:
        target = self.now + delay
        while self._events and self._events[0][0] <= target:
            when, fn = self._events.pop(0)
            self.now = max(self.now, when)
            fn()
        self.now = target
        await asyncio.sleep(0)


class FakeServer:
    """Stands in for uvicorn.Server: only the exit flags."""

    def __init__(self) -> None:
        self.should_exit = False
        self.force_exit = False


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def supervisor(fake_server) -> ServerSupervisor:
    sup = ServerSupervisor()
    sup.attach(fake_server)
    return sup


@pytest.fixture
def quiet_config() -> Json2YamlConfig:
    """Config whose liveness timers never fire during a test."""
    return Json2YamlConfig(
        server=ServerConfig(open_browser=False),
        lifecycle=LifecycleConfig(
            grace_delay=3600,
            check_interval=3600,
            warn_after=3600,
            confirm_window=1,
            stale_after=3601,
        ),
    )


@pytest.fixture
def quiet_session(supervisor, quiet_config, fake_clock) -> SessionLifecycle:
    return SessionLifecycle(supervisor, quiet_config.lifecycle, clock=fake_clock)
