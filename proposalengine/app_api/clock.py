"""Clock implementations for the Clock port."""

from __future__ import annotations

import datetime

from proposalengine.core.domain.models import require_aware


class SystemClock:
    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


class FixedClock:
    """Deterministic clock for tests and replays; moves only when told to."""

    def __init__(self, at: datetime.datetime) -> None:
        self._at = require_aware(at, "clock time")

    def now(self) -> datetime.datetime:
        return self._at

    def set(self, at: datetime.datetime) -> None:
        self._at = require_aware(at, "clock time")

    def advance(self, delta: datetime.timedelta) -> datetime.datetime:
        self._at = self._at + delta
        return self._at
