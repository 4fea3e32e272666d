"""Browser session liveness: connection tracking, heartbeats, shutdown timing.

The web GUI has exactly one client, the browser tab opened at startup.
Two independent signals decide that the tab is gone:

- ``ShutdownScheduler``: no transport connections for ``grace_delay``.
- ``HeartbeatMonitor``: no ``POST /heartbeat`` for ``stale_after``.

Neither exits the process itself.  Both hand a shutdown request to the
``ServerSupervisor``, which keeps the first one and ignores the rest.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Hashable
from typing import TYPE_CHECKING

from ..types import LifecycleConfig

if TYPE_CHECKING:
    from .supervisor import ServerSupervisor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# LivenessTracker
# ---------------------------------------------------------------------------

class LivenessTracker:
    """Open transport connections and the time of the last heartbeat.

    Thread-safe: connection callbacks arrive on the event loop, the
    shutdown timer reads the count from its own thread.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._connections: set[Hashable] = set()
        self._lock = threading.Lock()
        self._last_heartbeat: float = clock()

    def on_connection_opened(self, conn_id: Hashable) -> None:
        with self._lock:
            self._connections.add(conn_id)

    def on_connection_closed(self, conn_id: Hashable) -> None:
        with self._lock:
            self._connections.discard(conn_id)

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def record_heartbeat(self) -> None:
        # Single float store, last writer wins.
        self._last_heartbeat = self._clock()

    def seconds_since_heartbeat(self) -> float:
        return self._clock() - self._last_heartbeat


# ---------------------------------------------------------------------------
# ShutdownScheduler
# ---------------------------------------------------------------------------

class ShutdownScheduler:
    """Debounced "no connections left" timer.

    At most one timer is pending.  Every connection-set change re-evaluates:
    an empty set re-arms the timer, a non-empty set cancels it.  When the
    timer fires it re-checks, under the same lock, that it is still the
    current timer and that the set is still empty before calling *action*.
    """

    def __init__(
        self,
        tracker: LivenessTracker,
        action: Callable[[], None],
        grace_delay: float = 5.0,
    ) -> None:
        self._tracker = tracker
        self._action = action
        self.grace_delay = grace_delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def on_connection_count_changed(self) -> None:
        with self._lock:
            self._cancel_locked()
            if self._closed or self._tracker.connection_count() > 0:
                return
            self._generation += 1
            timer = threading.Timer(self.grace_delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()
            logger.debug("No open connections; shutdown armed in %.1fs", self.grace_delay)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def close(self) -> None:
        """Cancel any pending timer and stop arming new ones."""
        with self._lock:
            self._closed = True
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            if self._closed or self._tracker.connection_count() > 0:
                return
        try:
            self._action()
        except Exception:
            logger.exception("Zero-connection shutdown action failed")


# ---------------------------------------------------------------------------
# HeartbeatMonitor
# ---------------------------------------------------------------------------

class HeartbeatMonitor:
    """Periodic two-phase heartbeat staleness check.

    Each tick: if the last heartbeat is older than ``warn_after``, wait
    ``confirm_window`` and look again.  Only if it is then older than
    ``stale_after`` is *on_stale* called (once) and the loop ends.
    """

    def __init__(
        self,
        tracker: LivenessTracker,
        config: LifecycleConfig,
        on_stale: Callable[[], None],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._tracker = tracker
        self.config = config
        self._on_stale = on_stale
        self._sleep = sleep

    async def run(self) -> None:
        self._tracker.record_heartbeat()
        while True:
            await self._sleep(self.config.check_interval)
            try:
                if await self.check():
                    return
            except Exception:
                logger.exception("Heartbeat check failed; continuing")

    async def check(self) -> bool:
        """Run one detect/confirm/act cycle. Returns True if shutdown was requested."""
        elapsed = self._tracker.seconds_since_heartbeat()
        if elapsed <= self.config.warn_after:
            return False

        logger.warning(
            "No heartbeat for %.1fs. Browser may have been closed.", elapsed,
        )
        await self._sleep(self.config.confirm_window)

        elapsed = self._tracker.seconds_since_heartbeat()
        if elapsed <= self.config.stale_after:
            logger.info("Heartbeat resumed")
            return False

        logger.warning("Browser appears to be closed. Shutting down server...")
        self._on_stale()
        return True


# ---------------------------------------------------------------------------
# SessionLifecycle
# ---------------------------------------------------------------------------

class SessionLifecycle:
    """Per-server owner of the tracker, scheduler and monitor."""

    def __init__(
        self,
        supervisor: ServerSupervisor,
        config: LifecycleConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or LifecycleConfig()
        self.supervisor = supervisor
        self.tracker = LivenessTracker(clock=clock)
        self.scheduler = ShutdownScheduler(
            self.tracker,
            action=self._on_no_connections,
            grace_delay=self.config.grace_delay,
        )
        self.monitor = HeartbeatMonitor(
            self.tracker, self.config, on_stale=self._on_heartbeat_stale,
        )
        self._monitor_task: asyncio.Task | None = None

    # --------------- transport callbacks ---------------

    def connection_opened(self, conn_id: Hashable) -> None:
        self.tracker.on_connection_opened(conn_id)
        self.scheduler.on_connection_count_changed()

    def connection_closed(self, conn_id: Hashable) -> None:
        self.tracker.on_connection_closed(conn_id)
        self.scheduler.on_connection_count_changed()

    def record_heartbeat(self) -> None:
        self.tracker.record_heartbeat()

    # --------------- start / stop ---------------

    def start(self) -> None:
        """Start the heartbeat monitor on the running event loop."""
        if self._monitor_task is None:
            self._monitor_task = asyncio.get_running_loop().create_task(
                self.monitor.run(), name="json2yaml-heartbeat-monitor",
            )

    async def stop(self) -> None:
        self.scheduler.close()
        task, self._monitor_task = self._monitor_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # --------------- shutdown producers ---------------

    def _on_no_connections(self) -> None:
        logger.info("No active connections detected. Shutting down server...")
        self.supervisor.request_shutdown("no active connections", abrupt=True)

    def _on_heartbeat_stale(self) -> None:
        self.supervisor.request_shutdown("heartbeat timeout")
