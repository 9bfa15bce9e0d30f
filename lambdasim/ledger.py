from typing import Dict, List, Tuple

from .errors import InvalidAmount
from .models import LedgerEvent


class TimelineLedger:
    """
    Append-only, per-worker log of memory allocate/release events.

    Point-in-time usage is answered by accumulating every event of the worker whose
    timestamp is <= the query time (closed interval). Not thread-safe.
    """

    def __init__(self):
        self._events: Dict[int, List[LedgerEvent]] = {}

    def append(self, worker_id: int, timestamp: float, amount: float, is_allocate: bool) -> LedgerEvent:
        """Records one event for `worker_id`. Raises InvalidAmount if `amount` is negative."""
        if amount < 0:
            raise InvalidAmount(amount)
        event = LedgerEvent(timestamp, worker_id, amount, is_allocate)
        self._events.setdefault(worker_id, []).append(event)
        return event

    def usage_at(self, worker_id: int, timestamp: float) -> float:
        """Memory in use on `worker_id` at `timestamp`, events at exactly `timestamp` included."""
        return sum(e.delta for e in self._events.get(worker_id, ()) if e.timestamp <= timestamp)

    def events(self, worker_id: int) -> Tuple[LedgerEvent, ...]:
        return tuple(self._events.get(worker_id, ()))

    def worker_ids(self) -> List[int]:
        return sorted(self._events)

    def timeline(self, worker_id: int) -> List[Tuple[float, float]]:
        """
        Returns the (timestamp, usage) change points of a worker in ascending time,
        one entry per distinct event timestamp.
        """
        points: List[Tuple[float, float]] = []
        usage = 0
        for event in sorted(self._events.get(worker_id, ()), key=lambda e: e.timestamp):
            usage += event.delta
            if points and points[-1][0] == event.timestamp:
                points[-1] = (event.timestamp, usage)
            else:
                points.append((event.timestamp, usage))
        return points

    def peak_usage(self, worker_id: int) -> float:
        points = self.timeline(worker_id)
        if not points:
            return 0.0
        return max(usage for _, usage in points)

    def __len__(self) -> int:
        return sum(len(events) for events in self._events.values())
