"""Injectable clock so period boundaries can be pinned in tests."""

from datetime import datetime, timezone


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
