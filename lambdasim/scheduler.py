import logging
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .errors import DuplicateRequest, EmptyWorkerPool
from .ledger import TimelineLedger
from .models import InvocationOutcome, InvocationRequest, Worker
from .placement import PlacementPolicy, make_placement_policy
from .warm_pool import WarmPoolTracker

logger = logging.getLogger(__name__)


class InvocationScheduler:
    """
    Assigns invocations to workers, classifies them warm or cold and books their
    memory on the timeline ledger, strictly in (arrival_time, request_id) order.

    Every call to `schedule` is an isolated run: the ledger, the warm pool and the
    placement cursor are rebuilt before the first invocation is placed. After a run,
    `ledger` and `warm_pool` answer usage and warm-status queries for it.
    """

    def __init__(self, workers: Sequence[Worker], placement_policy: Union[PlacementPolicy, str],
                 warm_window_seconds: float, cold_start_duration: float, warm_start_duration: float,
                 invocation_memory: Optional[float] = None, memory_fraction: Optional[float] = None):
        if not workers:
            raise EmptyWorkerPool()
        if warm_window_seconds < 0:
            raise ValueError(f"warm_window_seconds must be >= 0, got {warm_window_seconds}")
        if warm_start_duration < 0 or cold_start_duration < 0:
            raise ValueError("execution durations must be >= 0")
        if warm_start_duration > cold_start_duration:
            raise ValueError(
                f"warm_start_duration ({warm_start_duration}) cannot exceed "
                f"cold_start_duration ({cold_start_duration})")
        if (invocation_memory is None) == (memory_fraction is None):
            raise ValueError("exactly one of invocation_memory and memory_fraction must be given")
        if invocation_memory is not None and invocation_memory < 0:
            raise ValueError(f"invocation_memory must be >= 0, got {invocation_memory}")
        if memory_fraction is not None and not 0 <= memory_fraction <= 1:
            raise ValueError(f"memory_fraction must be within [0, 1], got {memory_fraction}")

        self.workers = list(workers)
        self._workers_by_id = {worker.worker_id: worker for worker in self.workers}
        if isinstance(placement_policy, str):
            placement_policy = make_placement_policy(placement_policy)
        self.placement_policy = placement_policy
        self.warm_window_seconds = warm_window_seconds
        self.cold_start_duration = cold_start_duration
        self.warm_start_duration = warm_start_duration
        self.invocation_memory = invocation_memory
        self.memory_fraction = memory_fraction

        self.ledger = TimelineLedger()
        self.warm_pool = WarmPoolTracker(warm_window_seconds)
        self._run_lock = threading.Lock()

    @property
    def policy_name(self) -> str:
        return self.placement_policy.name

    def reset_state(self):
        self.ledger = TimelineLedger()
        self.warm_pool = WarmPoolTracker(self.warm_window_seconds)
        self.placement_policy.reset()

    def execution_length(self, is_warm: bool) -> float:
        return self.warm_start_duration if is_warm else self.cold_start_duration

    def memory_footprint(self, worker: Worker) -> float:
        """Memory one invocation holds on `worker` for its whole execution."""
        if self.memory_fraction is not None:
            return worker.total_memory * self.memory_fraction
        return self.invocation_memory

    def schedule(self, requests: Iterable[InvocationRequest],
                 observer: Optional[Callable[[InvocationOutcome], None]] = None) -> List[InvocationOutcome]:
        """
        Runs every request through placement, classification and ledger booking.

        Params
        ------
        requests: iterable of InvocationRequest, in any order
        observer: optional callable, invoked with each outcome right after it is finalized,
        while the ledger and warm pool reflect exactly the invocations processed so far

        Returns
        -------
        list[InvocationOutcome], finalized outcomes in processing order
        """
        ordered = sorted(requests, key=InvocationRequest.sort_key)
        seen = set()
        for request in ordered:
            if request.request_id in seen:
                raise DuplicateRequest(request.request_id)
            seen.add(request.request_id)

        with self._run_lock:
            self.reset_state()
            logger.info(
                f"Scheduling {len(ordered)} invocations on {len(self.workers)} workers "
                f"with placement '{self.policy_name}'")
            outcomes = []
            for request in ordered:
                outcome = self._process(request)
                outcomes.append(outcome)
                if observer is not None:
                    observer(outcome)
            cold_starts = sum(1 for outcome in outcomes if not outcome.is_warm)
            logger.info(f"Finished run: {len(outcomes) - cold_starts} warm, {cold_starts} cold")
        return outcomes

    def _process(self, request: InvocationRequest) -> InvocationOutcome:
        outcome = InvocationOutcome(request)

        worker_id = self.placement_policy.select(request, self.workers)
        outcome.place(worker_id)

        is_warm = self.warm_pool.is_warm(request.function_type, worker_id, request.arrival_time)
        outcome.classify(is_warm, self.execution_length(is_warm))
        # the decision above must not see this invocation's own record
        self.warm_pool.record_invocation(request.function_type, worker_id, request.arrival_time)

        memory = self.memory_footprint(self._workers_by_id[worker_id])
        self.ledger.append(worker_id, request.arrival_time, memory, True)
        self.ledger.append(worker_id, request.arrival_time + outcome.execution_length, memory, False)
        outcome.finalize(memory)

        logger.debug(
            f"Invocation {request.request_id} (func {request.function_type}) -> worker {worker_id}, "
            f"{'warm' if is_warm else 'cold'}, finish at {outcome.finish_time}")
        return outcome
