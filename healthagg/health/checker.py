"""Composite checker — fans out to every registered probe and combines results.

Two read paths:

- live: ``evaluate()`` runs every probe concurrently (one worker thread per
  probe), waits for all of them and folds the results into one ``Health``.
- cached: after ``start(interval)`` a daemon thread re-evaluates on a fixed
  schedule and ``check()`` only reads the latest snapshot, so callers never
  block on slow probes.

Probes should be registered before ``start()`` or before concurrent use;
each evaluation snapshots the registration list, so late registration only
takes effect from the next evaluation.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from healthagg.health.rwlock import ReadWriteLock
from healthagg.health.status import Health

logger = logging.getLogger(__name__)

LAST_CHECK_TS = "lastcheck.ts"
LAST_CHECK_TOOK = "lastcheck.took"


@runtime_checkable
class Checker(Protocol):
    """Anything that can report its own health."""

    def check(self) -> Health: ...


class CheckerFunc:
    """Adapter so a plain function can be registered as a Checker."""

    def __init__(self, func: Callable[[], Health]) -> None:
        self._func = func

    def check(self) -> Health:
        return self._func()


@dataclass(frozen=True)
class _CheckerItem:
    name: str
    checker: Checker


class _CachedState:
    """Single shared slot holding the latest combined result."""

    def __init__(self, health: Health) -> None:
        self._health = health
        self._lock = ReadWriteLock()

    def get(self) -> Health:
        with self._lock.read_locked():
            return self._health

    def set(self, health: Health) -> None:
        with self._lock.write_locked():
            self._health = health


class CompositeChecker:
    """Aggregates named checkers into one overall status.

    The aggregate is UP only when every probe is UP; any other probe status
    (DOWN, OUT OF SERVICE, UNKNOWN) makes it DOWN. Each probe's own result is
    nested under its registration name, followed by the static info added
    with ``add_info``.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self._checkers: list[_CheckerItem] = []
        self._info: dict[str, Any] = {}
        self._max_workers = max_workers
        self._config_lock = threading.Lock()

        # Background refresh
        self._lifecycle_lock = threading.Lock()
        self._last_state: _CachedState | None = None
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    # ── Configuration ────────────────────────────────────────────────────

    def add_info(self, key: str, value: Any) -> CompositeChecker:
        """Add a static annotation merged into every combined result."""
        with self._config_lock:
            self._info[key] = value
        return self

    def add_checker(self, name: str, checker: Checker) -> CompositeChecker:
        """Register a checker under ``name``.

        Duplicate names are accepted; results are merged in registration
        order, so the last registration under a name wins.
        """
        with self._config_lock:
            if any(item.name == name for item in self._checkers):
                logger.warning("Checker %r registered more than once; last registration wins", name)
            self._checkers.append(_CheckerItem(name=name, checker=checker))
        return self

    @property
    def names(self) -> list[str]:
        with self._config_lock:
            return [item.name for item in self._checkers]

    @property
    def running(self) -> bool:
        return self._stop_event is not None

    # ── Evaluation ───────────────────────────────────────────────────────

    def check(self) -> Health:
        """Return the combined health.

        Once background refresh has been started this only reads the cached
        snapshot (which is kept after ``stop()``); otherwise it evaluates
        every probe now.

        In cached mode every caller receives the same shared record, nested
        probe results included. Treat it as read-only: calling ``add_info``
        or a status setter on it changes what every other reader sees.
        """
        state = self._last_state
        if state is not None:
            return state.get()
        return self.evaluate()

    def evaluate(self) -> Health:
        """Run every registered probe concurrently and combine the results.

        Blocks until all probes have returned. An exception raised by a probe
        is re-raised here once every probe has finished.
        """
        with self._config_lock:
            items = list(self._checkers)
            info = dict(self._info)

        health = Health().set_up()

        if items:
            workers = self._max_workers or len(items)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="healthagg-probe") as pool:
                futures = [pool.submit(item.checker.check) for item in items]
                wait(futures)

            for item, future in zip(items, futures):
                result = future.result()
                if not result.is_up() and not health.is_down():
                    health.set_down()
                health.add_info(item.name, result)

        for key, value in info.items():
            health.add_info(key, value)

        return health

    def _timed_evaluate(self) -> Health:
        ts = datetime.now(timezone.utc).isoformat()
        t0 = time.perf_counter()
        health = self.evaluate()
        took_ms = (time.perf_counter() - t0) * 1000
        return health.add_info(LAST_CHECK_TS, ts).add_info(LAST_CHECK_TOOK, round(took_ms, 1))

    # ── Background refresh ───────────────────────────────────────────────

    def start(self, interval: float) -> None:
        """Populate the cache now and refresh it every ``interval`` seconds.

        No-op if refresh is already running.
        """
        with self._lifecycle_lock:
            if self._stop_event is not None:
                return
            if interval <= 0:
                raise ValueError(f"interval must be positive, got {interval}")

            state = _CachedState(self._timed_evaluate())
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._refresh_loop,
                args=(interval, state, stop_event),
                name=f"healthagg-refresh-{id(self):x}",
                daemon=True,
            )
            self._last_state = state
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        logger.info("Health refresh started (interval=%ss, checkers=%d)", interval, len(self.names))

    def stop(self) -> None:
        """Stop future refreshes. No-op if refresh is not running.

        Does not wait for an evaluation already in flight; that one may
        still update the cache once. ``check()`` keeps serving the last
        cached result.
        """
        with self._lifecycle_lock:
            if self._stop_event is None:
                return
            self._stop_event.set()
            self._stop_event = None
            self._thread = None

        logger.info("Health refresh stopped")

    def _refresh_loop(self, interval: float, state: _CachedState, stop_event: threading.Event) -> None:
        next_tick = time.monotonic() + interval

        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            try:
                health = self._timed_evaluate()
            except Exception:
                logger.exception("Health refresh failed, keeping previous result")
            else:
                state.set(health)
                logger.debug(
                    "Health refreshed: %s (%sms)",
                    health.status.value, health.get_info(LAST_CHECK_TOOK),
                )

            # Fixed rate: ticks missed during a slow evaluation are dropped.
            next_tick += interval
            now = time.monotonic()
            if next_tick <= now:
                next_tick += ((now - next_tick) // interval + 1) * interval
