import pytest

from lambdasim.models import (
    InvocationOutcome,
    InvocationRequest,
    InvocationState,
    LedgerEvent,
    SimulationStats,
    Worker,
    create_worker_pool,
)


@pytest.mark.parametrize(
    "function_type, arrival_time",
    [[-1, 0.0], [0, -0.1], [1.5, 0.0], [True, 0.0], ["1", 0.0], [0, float("nan")]],
)
def test_invalid_request(function_type, arrival_time):
    with pytest.raises(ValueError):
        InvocationRequest(function_type, arrival_time, 0)


def test_request_is_immutable():
    request = InvocationRequest(1, 2.0, 3)
    with pytest.raises(AttributeError):
        request.arrival_time = 5.0


def test_create_worker_pool():
    pool = create_worker_pool([256, 512], cpu_capacity=2000)
    assert [w.worker_id for w in pool] == [0, 1]
    assert [w.total_memory for w in pool] == [256, 512]
    assert all(w.cpu_capacity == 2000 for w in pool)
    with pytest.raises(ValueError):
        Worker(0, -1)


def test_ledger_event_delta():
    assert LedgerEvent(0.0, 0, 64, True).delta == 64
    assert LedgerEvent(0.0, 0, 64, False).delta == -64


def test_outcome_transitions():
    outcome = InvocationOutcome(InvocationRequest(2, 10.0, 7))
    assert outcome.state is InvocationState.PENDING

    with pytest.raises(RuntimeError):
        outcome.classify(True, 40.0)

    outcome.place(1)
    with pytest.raises(RuntimeError):
        outcome.place(0)
    with pytest.raises(RuntimeError):
        outcome.finalize(128)

    outcome.classify(False, 50.0)
    outcome.finalize(128)
    assert outcome.is_finalized
    assert outcome.finish_time == 60.0
    assert outcome.as_dict() == {
        "request_id": 7,
        "function_type": 2,
        "arrival_time": 10.0,
        "worker_id": 1,
        "is_warm": False,
        "execution_length": 50.0,
        "finish_time": 60.0,
        "memory": 128,
    }
    with pytest.raises(RuntimeError):
        outcome.finalize(128)
    with pytest.raises(AttributeError):
        outcome.is_warm = True


def test_outcome_is_unhashable():
    first = InvocationOutcome(InvocationRequest(0, 0.0, 1))
    second = InvocationOutcome(InvocationRequest(0, 0.0, 1))
    assert first == second
    with pytest.raises(TypeError):
        hash(first)
    with pytest.raises(TypeError):
        {first}


def test_simulation_stats():
    stats = SimulationStats("test", [0, 1])
    assert stats.get_warm_hit_rate() == 0.0
    for request_id, (worker_id, is_warm) in enumerate([(0, False), (0, True), (1, False), (0, True)]):
        outcome = InvocationOutcome(InvocationRequest(0, float(request_id), request_id))
        outcome.place(worker_id)
        outcome.classify(is_warm, 40.0 if is_warm else 50.0)
        outcome.finalize(128)
        stats.add_outcome(outcome)

    assert stats.cold_starts == 2
    assert stats.warm_starts == 2
    assert stats.requests_per_worker == {0: 3, 1: 1}
    assert stats.get_warm_hit_rate() == 0.5
    assert stats.makespan == 52.0
