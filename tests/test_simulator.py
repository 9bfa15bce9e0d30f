import logging
import os

import pandas as pd
import pytest

from lambdasim.errors import EmptyWorkerPool
from lambdasim.ledger import TimelineLedger
from lambdasim.results import plotting
from lambdasim.run_multiple import run_comparison
from lambdasim.simulator import Simulator
from lambdasim.warm_pool import WarmPoolTracker
from lambdasim.workload import generate_random_workload


@pytest.fixture(scope="function")
def simulator():
    sim = Simulator()
    sim.run_simulation()
    return sim


def test_default_run(simulator):
    stats = simulator.stats
    assert stats.total_invocations == 10
    assert stats.cold_starts == 3
    assert stats.warm_starts == 7
    assert stats.requests_per_worker == {0: 4, 1: 3, 2: 3, 3: 0, 4: 0}
    assert stats.makespan == 490.0
    assert stats.peak_memory_per_worker == {0: 128.0, 1: 128.0, 2: 128.0, 3: 0.0, 4: 0.0}
    assert simulator.policy_name == "modulo-hash_warm300s"


def test_diagnostic_views(simulator):
    assert simulator.warm_status(450.0) == {0: [0], 1: [1], 2: [2], 3: [], 4: []}
    assert simulator.memory_usage(460.0) == {0: 128.0, 1: 0.0, 2: 0.0, 3: 0.0, 4: 0.0}


def test_frames(simulator):
    outcomes = simulator.outcomes_frame()
    assert len(outcomes) == 10
    assert outcomes["is_warm"].sum() == 7

    timeline = simulator.memory_timeline_frame()
    assert set(timeline["worker_id"]) == {0, 1, 2}
    worker0 = timeline[timeline["worker_id"] == 0]
    assert worker0["memory_in_use"].tolist() == [128.0, 0.0] * 4
    assert worker0["utilization"].max() == 25.0


def test_warm_status_logged_during_run(caplog):
    caplog.set_level(logging.DEBUG, logger="lambdasim.simulator")
    Simulator(memory_capacities=[512, 512], placement_strategy="round-robin",
              warm_window_seconds=5.0).run_simulation()
    assert "Warm function status at time 0.0:" in caplog.text
    assert "VM 0: Func0" in caplog.text
    assert "VM 1: No warm functions" in caplog.text


def test_diagnostics_skipped_without_debug(caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger="lambdasim.simulator")
    calls = []

    def _count(name):
        def _raise(*args, **kwargs):
            calls.append(name)
            raise AssertionError(f"{name} called with DEBUG disabled")
        return _raise

    monkeypatch.setattr(WarmPoolTracker, "status_snapshot", _count("status_snapshot"))
    monkeypatch.setattr(TimelineLedger, "usage_at", _count("usage_at"))
    sim = Simulator(memory_capacities=[512] * 3,
                    invocations=generate_random_workload(count=300, seed=7))
    sim.run_simulation()
    assert calls == []
    assert sim.stats.total_invocations == 300
    assert "Warm function status" not in caplog.text


def test_warm_status_ignores_later_records():
    sim = Simulator(memory_capacities=[512])
    sim.run_simulation()
    # last records: func0 at 450, func1 at 400, func2 at 350
    assert sim.warm_status(0.0) == {0: []}
    assert sim.warm_status(400.0) == {0: [1, 2]}
    assert sim.warm_status(450.0) == {0: [0, 1, 2]}


def test_overcommitted_worker_warning(caplog):
    caplog.set_level(logging.WARNING, logger="lambdasim.simulator")
    sim = Simulator(memory_capacities=[100], invocation_memory=128.0)
    sim.run_simulation()
    assert "above its 100.0 MB capacity" in caplog.text


def test_empty_pool():
    with pytest.raises(EmptyWorkerPool):
        Simulator(memory_capacities=[])


def test_save_results(simulator, tmp_path):
    results_dir = str(tmp_path)
    summary_file = simulator.save_results(results_dir, make_plots=False)
    simulator.save_results(results_dir, make_plots=False)

    summary = pd.read_csv(summary_file)
    assert len(summary) == 2
    assert summary.loc[0, "Cold Starts"] == 3
    assert summary.loc[0, "Warm Hit Rate (%)"] == 70.0
    assert summary.loc[0, "Peak Memory (MB)"] == 128.0

    outcomes = pd.read_csv(os.path.join(results_dir, "invocation_outcomes_modulo-hash_warm300s.csv"))
    assert outcomes["worker_id"].tolist() == [i % 3 for i in range(10)]


def test_save_results_with_plots(simulator, tmp_path):
    simulator.save_results(str(tmp_path))
    assert (tmp_path / "worker_requests_modulo-hash_warm300s.png").exists()
    assert (tmp_path / "memory_timeline_modulo-hash_warm300s.png").exists()


def test_plots_skip_empty_input(tmp_path):
    assert plotting.plot_worker_request_distribution({0: 0, 1: 0}, "empty", str(tmp_path)) is None
    empty = pd.DataFrame(columns=["worker_id", "timestamp", "memory_in_use"])
    assert plotting.plot_memory_usage_timeline(empty, "empty", str(tmp_path)) is None
    assert plotting.generate_pdf_report_from_summary(str(tmp_path)) is None


def test_run_comparison(tmp_path):
    results = run_comparison(invocation_count=30, results_dir=str(tmp_path), make_plots=False)
    assert len(results) == 8
    by_name = {res["policy_name"]: res for res in results}
    # modulo-hash keeps each function on one worker, so it never warms less than round-robin
    assert (by_name["modulo-hash_warm300s_fixed"]["warm_starts"]
            >= by_name["round-robin_warm300s_fixed"]["warm_starts"])
    assert max(by_name["round-robin_warm5s_fraction"]["peak_memory_per_worker"].values()) >= 512 * 0.4

    summary = pd.read_csv(tmp_path / "simulation_summary.csv")
    assert len(summary) == 8


def test_comparison_report(tmp_path):
    results = run_comparison(invocation_count=20, results_dir=str(tmp_path), make_plots=True)
    assert len(results) == 8
    assert (tmp_path / "comparison_cold_starts.png").exists()
    assert (tmp_path / "warm_pool_simulation_report.pdf").exists()
