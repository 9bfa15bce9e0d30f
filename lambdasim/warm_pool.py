from typing import Dict, Iterable, List, Optional, Tuple

from .models import Worker


class WarmPoolTracker:
    def __init__(self, warm_window_seconds: float):
        """
        Tracks, per (function type, worker) pair, when the function last ran there.
        """
        if warm_window_seconds < 0:
            raise ValueError(f"warm_window_seconds must be >= 0, got {warm_window_seconds}")
        self.warm_window_seconds = warm_window_seconds
        self._last_invocation: Dict[Tuple[int, int], float] = {}

    def _within_window(self, last_time: float, at_time: float) -> bool:
        return at_time - last_time <= self.warm_window_seconds

    def is_warm(self, function_type: int, worker_id: int, at_time: float) -> bool:
        """
        A pair is warm when it has run before and `at_time` is no more than the warm
        window after that run. Pairs never seen are cold.
        """
        last_time = self._last_invocation.get((function_type, worker_id))
        if last_time is None:
            return False
        return self._within_window(last_time, at_time)

    def record_invocation(self, function_type: int, worker_id: int, at_time: float):
        """
        Overwrites the last invocation time of the pair. Call only after the warm/cold
        decision for the current invocation has been read.
        """
        self._last_invocation[(function_type, worker_id)] = at_time

    def last_invocation(self, function_type: int, worker_id: int) -> Optional[float]:
        return self._last_invocation.get((function_type, worker_id))

    def status_snapshot(self, at_time: float, workers: Iterable[Worker]) -> Dict[int, List[int]]:
        """
        Function types warm on each worker at `at_time`. Pairs whose last record lies
        after `at_time` are left out. Does not modify the tracker.
        """
        snapshot = {worker.worker_id: [] for worker in workers}
        for (function_type, worker_id), last_time in self._last_invocation.items():
            if worker_id in snapshot and last_time <= at_time and self._within_window(last_time, at_time):
                snapshot[worker_id].append(function_type)
        for warm_types in snapshot.values():
            warm_types.sort()
        return snapshot
