"""Update cadence and retry behaviour.

The scheduler is a small state machine::

    idle --tick--> running --ok/aborted--> idle     (wait: interval)
                           --failed-----> backoff  (wait: backoff interval)
    backoff --tick--> running ...

Delays are measured from the end of the previous tick, so ticks never
overlap. Stopping is cooperative: the stop event interrupts idle/backoff
waits and is checked before each tick starts, but a running tick (and the
write it performs) always completes.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from enum import Enum
from collections.abc import Callable

from .models import UpdateOutcome

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECS = 2 * 3600.0
DEFAULT_BACKOFF_SECS = 10 * 60.0
HISTORY_SIZE = 50


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    BACKOFF = "backoff"


Tick = Callable[[], UpdateOutcome]
# Returns True when the wait was cut short by a stop request.
Wait = Callable[[float], bool]


class Scheduler:
    """Drive ``tick`` forever at a fixed interval, backing off after failures."""

    def __init__(
        self,
        tick: Tick,
        interval: float = DEFAULT_INTERVAL_SECS,
        backoff_interval: float = DEFAULT_BACKOFF_SECS,
        stop_event: threading.Event | None = None,
        wait: Wait | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 < backoff_interval < interval:
            raise ValueError("backoff_interval must be positive and shorter than interval")
        self.tick = tick
        self.interval = interval
        self.backoff_interval = backoff_interval
        self.stop_event = stop_event or threading.Event()
        self._wait = wait or self.stop_event.wait
        self.state = SchedulerState.IDLE
        self.last_outcome: UpdateOutcome | None = None
        self.history: deque[SchedulerState] = deque(maxlen=HISTORY_SIZE)

    def _set_state(self, state: SchedulerState) -> None:
        self.state = state
        self.history.append(state)

    def stop(self) -> None:
        """Request shutdown; takes effect at the next wait or tick boundary."""
        self.stop_event.set()

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def next_transition(self, outcome: UpdateOutcome) -> tuple[SchedulerState, float]:
        if outcome.is_error:
            return SchedulerState.BACKOFF, self.backoff_interval
        return SchedulerState.IDLE, self.interval

    def run_tick(self) -> tuple[SchedulerState, float]:
        """Run one tick and return the state and delay that follow it.

        Exceptions raised by the tick are logged and treated as a failed
        outcome; they never escape the scheduler.
        """
        self._set_state(SchedulerState.RUNNING)
        try:
            outcome = self.tick()
        except Exception as exc:
            logger.exception("Unexpected error during hosts update")
            outcome = UpdateOutcome.failure(f"{type(exc).__name__}: {exc}")
        self.last_outcome = outcome

        state, delay = self.next_transition(outcome)
        self._set_state(state)
        if state is SchedulerState.BACKOFF:
            logger.warning(
                "Update failed (%s); retrying in %.0f seconds", outcome.error, delay
            )
        else:
            logger.info("Update finished (%s); next run in %.0f seconds", outcome.status.value, delay)
        return state, delay

    def run_forever(self) -> None:
        """Run ticks until :meth:`stop` is called. The first tick runs immediately."""
        logger.info(
            "Scheduler started (interval %.0f s, backoff %.0f s)",
            self.interval,
            self.backoff_interval,
        )
        while not self.stopped:
            _, delay = self.run_tick()
            if self._wait(delay) or self.stopped:
                break
        self._set_state(SchedulerState.IDLE)
        logger.info("Scheduler stopped")
