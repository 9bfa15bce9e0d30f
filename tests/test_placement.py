import math
from collections import Counter

import pytest

from lambdasim.errors import EmptyWorkerPool
from lambdasim.models import InvocationRequest, create_worker_pool
from lambdasim.placement import (
    ModuloHashPlacement,
    RoundRobinPlacement,
    make_placement_policy,
)


@pytest.mark.parametrize("function_type, expected", [[0, 0], [1, 1], [4, 4], [5, 0], [12, 2]])
def test_modulo_hash(workers, function_type, expected):
    policy = ModuloHashPlacement()
    request = InvocationRequest(function_type, 0.0, 0)
    assert policy.select(request, workers) == expected
    # stateless: same answer on repeat
    assert policy.select(request, workers) == expected


def test_round_robin_ignores_function_type(two_workers):
    policy = RoundRobinPlacement()
    chosen = [policy.select(InvocationRequest(1, float(i), i), two_workers) for i in range(5)]
    assert chosen == [0, 1, 0, 1, 0]


def test_select_returns_worker_ids():
    pool = create_worker_pool([256, 256, 256])
    for worker, new_id in zip(pool, [10, 20, 30]):
        worker.worker_id = new_id
    policy = RoundRobinPlacement()
    assert [policy.select(InvocationRequest(0, 0.0, i), pool) for i in range(4)] == [10, 20, 30, 10]
    assert ModuloHashPlacement().select(InvocationRequest(2, 0.0, 0), pool) == 30


@pytest.mark.parametrize("invocations, pool_size", [[17, 5], [10, 5], [3, 4], [100, 7]])
def test_round_robin_fairness(invocations, pool_size):
    pool = create_worker_pool([512] * pool_size)
    policy = RoundRobinPlacement()
    counts = Counter(policy.select(InvocationRequest(i % 3, float(i), i), pool) for i in range(invocations))
    for worker in pool:
        assert counts[worker.worker_id] in (
            math.floor(invocations / pool_size), math.ceil(invocations / pool_size))


def test_round_robin_reset(two_workers):
    policy = RoundRobinPlacement()
    policy.select(InvocationRequest(0, 0.0, 0), two_workers)
    policy.reset()
    assert policy.cursor == 0


@pytest.mark.parametrize("policy", [ModuloHashPlacement(), RoundRobinPlacement()])
def test_empty_pool(policy):
    with pytest.raises(EmptyWorkerPool):
        policy.select(InvocationRequest(0, 0.0, 0), [])


def test_make_placement_policy():
    assert isinstance(make_placement_policy("modulo-hash"), ModuloHashPlacement)
    assert isinstance(make_placement_policy("round-robin"), RoundRobinPlacement)
    with pytest.raises(ValueError):
        make_placement_policy("least-loaded")
