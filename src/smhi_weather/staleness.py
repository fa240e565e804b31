"""Freshness bookkeeping for the fetch orchestrator."""

from __future__ import annotations

import time
from collections.abc import Callable


class StalenessPolicy:
    """Tracks the last successful fetch and whether one is in flight.

    Data counts as fresh only while the policy is enabled, the last fetch
    succeeded and it is younger than `max_age_seconds`.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        max_age_seconds: float = 1800.0,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be > 0.")
        self.enabled = enabled
        self.max_age_seconds = max_age_seconds
        self._time_func = time_func
        self.in_flight = False
        self.last_completed_at: float | None = None
        self.last_failed_at: float | None = None

    def started(self) -> None:
        self.in_flight = True

    def completed(self) -> None:
        self.in_flight = False
        self.last_completed_at = self._time_func()
        self.last_failed_at = None

    def failed(self) -> None:
        self.in_flight = False
        self.last_failed_at = self._time_func()

    def abandoned(self) -> None:
        """End the in-flight fetch without recording success or failure."""
        self.in_flight = False

    def age_seconds(self) -> float | None:
        if self.last_completed_at is None:
            return None
        return self._time_func() - self.last_completed_at

    def is_fresh(self) -> bool:
        if not self.enabled or self.last_failed_at is not None:
            return False
        age = self.age_seconds()
        return age is not None and age < self.max_age_seconds

    def is_due(self) -> bool:
        """True when a new fetch should be started now."""
        return not self.in_flight and not self.is_fresh()
