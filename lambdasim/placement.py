from abc import ABC, abstractmethod
from typing import Dict, Sequence, Type

from .errors import EmptyWorkerPool
from .models import InvocationRequest, Worker


class PlacementPolicy(ABC):
    """
    Maps an invocation onto one worker of a fixed pool.
    """

    name = "base"

    def select(self, request: InvocationRequest, pool: Sequence[Worker]) -> int:
        """Returns the id of the worker that runs `request`."""
        if not pool:
            raise EmptyWorkerPool()
        return pool[self.select_index(request, len(pool))].worker_id

    @abstractmethod
    def select_index(self, request: InvocationRequest, pool_size: int) -> int:
        ...

    def reset(self):
        """Rewinds any internal state so the policy can drive a fresh run."""


class ModuloHashPlacement(PlacementPolicy):
    """
    The same function type always lands on the same worker, which maximises warm hits
    at the cost of load skew when a few function types dominate.
    """

    name = "modulo-hash"

    def select_index(self, request: InvocationRequest, pool_size: int) -> int:
        return request.function_type % pool_size


class RoundRobinPlacement(PlacementPolicy):
    """
    A single cursor shared by all function types, advanced once per selection.
    """

    name = "round-robin"

    def __init__(self):
        self.cursor = 0

    def select_index(self, request: InvocationRequest, pool_size: int) -> int:
        index = self.cursor % pool_size
        self.cursor = (index + 1) % pool_size
        return index

    def reset(self):
        self.cursor = 0


PLACEMENT_POLICIES: Dict[str, Type[PlacementPolicy]] = {
    ModuloHashPlacement.name: ModuloHashPlacement,
    RoundRobinPlacement.name: RoundRobinPlacement,
}


def make_placement_policy(name: str) -> PlacementPolicy:
    try:
        policy_cls = PLACEMENT_POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown placement strategy '{name}', expected one of {sorted(PLACEMENT_POLICIES)}") from None
    return policy_cls()
