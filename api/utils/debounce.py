# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Debouncing for rapidly changing input values.
"""

from typing import Any, Callable, Optional
import threading
import logging

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.5


class Debouncer:
    """
    Emit a value only after it has stayed unchanged for a quiet period.

    Each ``push`` restarts the quiet period; only the last value pushed
    before the timer fires reaches ``callback``.
    """

    def __init__(
        self,
        callback: Callable[[Any], None],
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer
    ):
        """
        Initialize the debouncer.

        Args:
            callback: Receives the debounced value on the timer thread
            delay_seconds: Quiet period before a value is emitted
            timer_factory: ``threading.Timer`` compatible constructor
        """
        self.callback = callback
        self.delay_seconds = delay_seconds
        self._timer_factory = timer_factory
        self._timer: Optional[Any] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """Whether a value is waiting for its quiet period to end."""
        with self._lock:
            return self._timer is not None

    def push(self, value: Any) -> None:
        """Register a new value, restarting the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self._timer_factory(self.delay_seconds, self._fire, args=(value, self._generation))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        """Drop the pending value, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, value: Any, generation: int) -> None:
        with self._lock:
            # A timer cancelled too late still runs; its generation is stale
            if generation != self._generation:
                return
            self._timer = None
        try:
            self.callback(value)
        except Exception:
            logger.exception("Debounced callback failed")
