"""
Periodic driver for the watch cycle.

The :class:`Scheduler` runs a cycle as soon as it starts and then on a
fixed period until its stop event is set, either by :meth:`stop` or by
SIGINT/SIGTERM when signal handling is enabled. A running cycle is never
interrupted; cancellation only prevents the next one from starting.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


DEFAULT_INTERVAL = 29 * 60.0
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Scheduler:
    """Run ``cycle`` immediately and then every ``interval`` seconds.

    Ticks are scheduled at a fixed rate from the start time. When a cycle
    overruns one or more ticks, the missed ticks are dropped rather than
    run back to back.
    """

    def __init__(
        self,
        cycle: Callable[[], Any],
        interval: float = DEFAULT_INTERVAL,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.cycle = cycle
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.clock = clock
        self.runs = 0
        self._previous_handlers: Dict[int, Any] = {}

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to exit before the next cycle."""
        self.stop_event.set()

    def _handle_signal(self, signum: int, frame: Any) -> None:
        logger.info("Received %s, stopping after the current cycle", signal.Signals(signum).name)
        self.stop()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to :meth:`stop`. Main thread only."""
        for signum in STOP_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _run_cycle(self) -> None:
        self.runs += 1
        try:
            self.cycle()
        except Exception:
            # Keep the daemon alive; the next tick retries from live state.
            logger.exception("Unhandled error during cycle %d", self.runs)

    def _next_deadline(self, started: float, now: float) -> float:
        if self.interval == 0:
            return now
        ticks = int((now - started) // self.interval) + 1
        return started + ticks * self.interval

    def run(self, handle_signals: bool = False) -> None:
        """Loop until stopped.

        Parameters
        ----------
        handle_signals : bool
            Install SIGINT/SIGTERM handlers for the duration of the loop
            and restore the previous ones afterwards.
        """
        if handle_signals:
            self.install_signal_handlers()
        try:
            started = self.clock()
            if not self.stopped:
                self._run_cycle()
            while not self.stopped:
                deadline = self._next_deadline(started, self.clock())
                # wait() returns True as soon as the stop event is set.
                if self.stop_event.wait(max(0.0, deadline - self.clock())):
                    break
                self._run_cycle()
        finally:
            if handle_signals:
                self.restore_signal_handlers()
        logger.debug("Scheduler stopped after %d cycle(s)", self.runs)
