import enum
import math
import numbers
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .config import WORKER_CPU_MIPS


@dataclass(frozen=True)
class InvocationRequest:
    """
    A single function invocation in the input workload. Never mutated once built.
    """

    function_type: int
    arrival_time: float
    request_id: int

    def __post_init__(self):
        if isinstance(self.function_type, bool) or not isinstance(self.function_type, numbers.Integral) \
                or self.function_type < 0:
            raise ValueError(f"function_type must be a non-negative integer, got {self.function_type}")
        if math.isnan(self.arrival_time) or self.arrival_time < 0:
            raise ValueError(f"arrival_time must be >= 0, got {self.arrival_time}")

    def sort_key(self):
        return self.arrival_time, self.request_id


class Worker:
    """
    Represents a simulated VM that executes function invocations.
    """

    def __init__(self, worker_id: int, total_memory: float, cpu_capacity: float = WORKER_CPU_MIPS):
        if total_memory < 0:
            raise ValueError(f"total_memory must be >= 0, got {total_memory}")
        self.worker_id = worker_id
        self.total_memory = total_memory
        self.cpu_capacity = cpu_capacity

    def __repr__(self) -> str:
        return f"Worker(id={self.worker_id}, memory={self.total_memory}MB, cpu={self.cpu_capacity})"


def create_worker_pool(memory_capacities: Sequence[float], cpu_capacity: float = WORKER_CPU_MIPS) -> List[Worker]:
    """Builds a fixed pool with worker ids 0..n-1, one worker per memory capacity."""
    return [Worker(i, capacity, cpu_capacity) for i, capacity in enumerate(memory_capacities)]


@dataclass(frozen=True)
class LedgerEvent:
    timestamp: float
    worker_id: int
    amount: float
    is_allocate: bool

    @property
    def delta(self) -> float:
        return self.amount if self.is_allocate else -self.amount


class InvocationState(enum.Enum):
    PENDING = "pending"
    PLACED = "placed"
    CLASSIFIED = "classified"
    FINALIZED = "finalized"


class InvocationOutcome:
    """
    Result record for one invocation. Owned by the scheduler while it walks the
    PENDING -> PLACED -> CLASSIFIED -> FINALIZED transitions; read-only afterwards.
    """

    def __init__(self, request: InvocationRequest):
        self.request_id = request.request_id
        self.function_type = request.function_type
        self.arrival_time = request.arrival_time
        self.state = InvocationState.PENDING

        self.worker_id: Optional[int] = None
        self.is_warm: Optional[bool] = None
        self.execution_length: Optional[float] = None
        self.finish_time: Optional[float] = None
        self.memory: Optional[float] = None

    def _check_transition(self, expected: InvocationState, target: InvocationState):
        if self.state is not expected:
            raise RuntimeError(
                f"invocation {self.request_id}: cannot move to {target.value} from {self.state.value}")

    def place(self, worker_id: int):
        self._check_transition(InvocationState.PENDING, InvocationState.PLACED)
        self.worker_id = worker_id
        self.state = InvocationState.PLACED

    def classify(self, is_warm: bool, execution_length: float):
        self._check_transition(InvocationState.PLACED, InvocationState.CLASSIFIED)
        self.is_warm = is_warm
        self.execution_length = execution_length
        self.state = InvocationState.CLASSIFIED

    def finalize(self, memory: float):
        self._check_transition(InvocationState.CLASSIFIED, InvocationState.FINALIZED)
        self.memory = memory
        self.finish_time = self.arrival_time + self.execution_length
        # state goes last, attributes are frozen from here on
        self.state = InvocationState.FINALIZED

    @property
    def is_finalized(self) -> bool:
        return self.state is InvocationState.FINALIZED

    def __setattr__(self, name, value):
        if self.__dict__.get("state") is InvocationState.FINALIZED:
            raise AttributeError(f"invocation {self.request_id} is finalized and cannot be modified")
        super().__setattr__(name, value)

    def as_dict(self) -> Dict[str, object]:
        return {
            "request_id": self.request_id,
            "function_type": self.function_type,
            "arrival_time": self.arrival_time,
            "worker_id": self.worker_id,
            "is_warm": self.is_warm,
            "execution_length": self.execution_length,
            "finish_time": self.finish_time,
            "memory": self.memory,
        }

    def __eq__(self, other):
        if not isinstance(other, InvocationOutcome):
            return NotImplemented
        return self.state is other.state and self.as_dict() == other.as_dict()

    # mutable until finalized, never hashable
    __hash__ = None

    def __repr__(self) -> str:
        start = "warm" if self.is_warm else "cold"
        return (f"InvocationOutcome(request={self.request_id}, worker={self.worker_id}, {start}, "
                f"finish={self.finish_time})")


class SimulationStats:
    """
    Aggregated statistics for a single simulation run.
    """

    def __init__(self, policy_name: str, worker_ids: Sequence[int]):
        self.policy_name = policy_name
        self.total_invocations = 0
        self.cold_starts = 0
        self.warm_starts = 0
        self.makespan = 0.0
        self.requests_per_worker: Dict[int, int] = {worker_id: 0 for worker_id in worker_ids}
        self.peak_memory_per_worker: Dict[int, float] = {worker_id: 0.0 for worker_id in worker_ids}

    def add_outcome(self, outcome: InvocationOutcome):
        self.total_invocations += 1
        if outcome.is_warm:
            self.warm_starts += 1
        else:
            self.cold_starts += 1
        self.requests_per_worker[outcome.worker_id] = self.requests_per_worker.get(outcome.worker_id, 0) + 1
        self.makespan = max(self.makespan, outcome.finish_time)

    def get_warm_hit_rate(self) -> float:
        if self.total_invocations == 0:
            return 0.0
        return self.warm_starts / self.total_invocations
