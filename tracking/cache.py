"""
Time-bounded, in-memory copy of the last full shipment fetch.

The cache holds the whole record set or nothing: every `set` replaces it in one
step and there are no partial updates. It is valid while it holds records and
is younger than its ttl. One lock guards every method because the web adapter
and the refresh ticker may use the same cache from different threads.
"""

import threading
import time

DEFAULT_TTL_SECONDS = 30


class ShipmentCache:

    def __init__(self, ttl_seconds=DEFAULT_TTL_SECONDS, clock=time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._records = []
        # 0 means "never populated".
        self._fetched_at = 0
        self._lock = threading.Lock()

    def is_valid(self):
        with self._lock:
            return bool(self._records) and (self.clock() - self._fetched_at) < self.ttl_seconds

    def set(self, records):
        with self._lock:
            self._records = list(records)
            self._fetched_at = self.clock()

    def clear(self):
        with self._lock:
            self._records = []
            self._fetched_at = 0

    def snapshot(self):
        """The cached records, whether or not they are still fresh."""
        with self._lock:
            return list(self._records)

    @property
    def fetched_at(self):
        return self._fetched_at

    def age_seconds(self):
        """Seconds since the last `set`, or None if the cache was never populated."""
        with self._lock:
            if self._fetched_at == 0:
                return None
            return max(0, self.clock() - self._fetched_at)

    def describe_age(self):
        """Human readable age, e.g. "Updated 5 seconds ago"."""
        age = self.age_seconds()
        if age is None:
            return 'No data loaded'

        age = int(age)
        if age < 60:
            return f"Updated {age} second{'' if age == 1 else 's'} ago"
        minutes = age // 60
        return f"Updated {minutes} minute{'' if minutes == 1 else 's'} ago"

    def __len__(self):
        with self._lock:
            return len(self._records)
