import csv
import logging
import os
import time
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import (
    WORKER_CPU_MIPS, WORKER_MEMORY_CAPACITIES, PLACEMENT_STRATEGY, WARM_WINDOW_SECONDS,
    COLD_START_DURATION, WARM_START_DURATION, INVOCATION_MEMORY_MB, RESULTS_DIR
)
from .models import InvocationOutcome, InvocationRequest, SimulationStats, create_worker_pool
from .scheduler import InvocationScheduler
from .workload import build_execution_schedule
from .results import plotting

logger = logging.getLogger(__name__)


class Simulator:
    def __init__(self, memory_capacities: Sequence[float] = WORKER_MEMORY_CAPACITIES,
                 placement_strategy: str = PLACEMENT_STRATEGY,
                 warm_window_seconds: float = WARM_WINDOW_SECONDS,
                 cold_start_duration: float = COLD_START_DURATION,
                 warm_start_duration: float = WARM_START_DURATION,
                 invocation_memory: Optional[float] = None, memory_fraction: Optional[float] = None,
                 cpu_capacity: float = WORKER_CPU_MIPS,
                 invocations: Optional[Sequence[InvocationRequest]] = None,
                 run_label: Optional[str] = None):

        if invocation_memory is None and memory_fraction is None:
            invocation_memory = INVOCATION_MEMORY_MB

        self.workers = create_worker_pool(memory_capacities, cpu_capacity)
        self.placement_strategy = placement_strategy
        self.warm_window_seconds = warm_window_seconds
        self.scheduler = InvocationScheduler(
            self.workers, placement_strategy, warm_window_seconds,
            cold_start_duration, warm_start_duration,
            invocation_memory=invocation_memory, memory_fraction=memory_fraction
        )
        self.invocations: List[InvocationRequest] = list(
            invocations if invocations is not None else build_execution_schedule())
        self.policy_name = run_label or f"{placement_strategy}_warm{warm_window_seconds:g}s"

        self.outcomes: List[InvocationOutcome] = []
        self.stats = SimulationStats(self.policy_name, [w.worker_id for w in self.workers])

        logger.info(
            f"Simulator initialized with placement strategy: {placement_strategy}, "
            f"warm window: {warm_window_seconds}s, workers: {len(self.workers)}")

    def _on_invocation(self, outcome: InvocationOutcome):
        # both views scan the whole run so far, only build them when they are emitted
        if not logger.isEnabledFor(logging.DEBUG):
            return
        self._log_warm_status(outcome.arrival_time)
        self._log_memory_usage(outcome.arrival_time)

    def _log_warm_status(self, current_time: float):
        logger.debug(f"Warm function status at time {current_time}:")
        for worker_id, warm_types in self.warm_status(current_time).items():
            names = ", ".join(f"Func{f}" for f in warm_types) if warm_types else "No warm functions"
            logger.debug(f"  VM {worker_id}: {names}")

    def _log_memory_usage(self, current_time: float):
        logger.debug(f"Memory usage at time {current_time}:")
        for worker in self.workers:
            used = self.scheduler.ledger.usage_at(worker.worker_id, current_time)
            logger.debug(f"  VM {worker.worker_id}: {used:.1f}/{worker.total_memory:.1f} MB")

    def warm_status(self, at_time: float) -> Dict[int, List[int]]:
        return self.scheduler.warm_pool.status_snapshot(at_time, self.workers)

    def memory_usage(self, at_time: float) -> Dict[int, float]:
        return {w.worker_id: self.scheduler.ledger.usage_at(w.worker_id, at_time) for w in self.workers}

    def run_simulation(self) -> List[InvocationOutcome]:
        start_time_real = time.time()
        logger.info(f"Starting simulation of {len(self.invocations)} invocations...")

        self.outcomes = self.scheduler.schedule(self.invocations, observer=self._on_invocation)

        self.stats = SimulationStats(self.policy_name, [w.worker_id for w in self.workers])
        for outcome in self.outcomes:
            self.stats.add_outcome(outcome)
        for worker in self.workers:
            peak = self.scheduler.ledger.peak_usage(worker.worker_id)
            self.stats.peak_memory_per_worker[worker.worker_id] = peak
            if peak > worker.total_memory:
                logger.warning(
                    f"VM {worker.worker_id} peaks at {peak:.1f} MB, above its {worker.total_memory:.1f} MB capacity")

        end_time_real = time.time()
        logger.info(f"Total simulation wall time: {end_time_real - start_time_real:.2f} seconds.")
        return self.outcomes

    def outcomes_frame(self) -> pd.DataFrame:
        columns = ["request_id", "function_type", "arrival_time", "worker_id", "is_warm",
                   "execution_length", "finish_time", "memory"]
        return pd.DataFrame([outcome.as_dict() for outcome in self.outcomes], columns=columns)

    def memory_timeline_frame(self) -> pd.DataFrame:
        """One row per (worker, change point) with memory in use and utilization in percent."""
        rows = []
        for worker in self.workers:
            for timestamp, used in self.scheduler.ledger.timeline(worker.worker_id):
                utilization = 100.0 * used / worker.total_memory if worker.total_memory > 0 else 0.0
                rows.append({"worker_id": worker.worker_id, "timestamp": timestamp,
                             "memory_in_use": used, "utilization": utilization})
        return pd.DataFrame(rows, columns=["worker_id", "timestamp", "memory_in_use", "utilization"])

    def print_summary(self):
        print(f"\n=== Simulation Results ({self.policy_name}) ===")
        print(f"Total Invocations: {self.stats.total_invocations}")
        print(f"Warm Starts: {self.stats.warm_starts}")
        print(f"Cold Starts: {self.stats.cold_starts}")
        print(f"Warm Hit Rate: {100.0 * self.stats.get_warm_hit_rate():.2f}%")
        print(f"Makespan: {self.stats.makespan:.2f} s")
        for outcome in self.outcomes:
            print(f"Invocation {outcome.request_id} executed on VM {outcome.worker_id}"
                  f"{' (warm)' if outcome.is_warm else ' (cold)'}, Finish Time: {outcome.finish_time}")
        print("------------------------------------------")

    def save_results(self, results_dir: str = RESULTS_DIR, make_plots: bool = True) -> str:
        os.makedirs(results_dir, exist_ok=True)

        summary_file = os.path.join(results_dir, "simulation_summary.csv")
        outcomes_file = os.path.join(results_dir, f"invocation_outcomes_{self.policy_name}.csv")

        with open(summary_file, "a", newline="") as f:
            writer = csv.writer(f)
            if f.tell() == 0:
                writer.writerow(["Policy", "Placement", "Warm Window (s)", "Invocations", "Warm Starts",
                                 "Cold Starts", "Warm Hit Rate (%)", "Makespan (s)", "Peak Memory (MB)"])
            writer.writerow(
                [self.policy_name, self.placement_strategy, self.warm_window_seconds,
                 self.stats.total_invocations, self.stats.warm_starts, self.stats.cold_starts,
                 f"{100.0 * self.stats.get_warm_hit_rate():.2f}", f"{self.stats.makespan:.2f}",
                 f"{max(self.stats.peak_memory_per_worker.values(), default=0.0):.2f}"])

        self.outcomes_frame().to_csv(outcomes_file, index=False)

        if make_plots:
            plotting.plot_worker_request_distribution(
                self.stats.requests_per_worker, self.policy_name, results_dir)
            plotting.plot_memory_usage_timeline(self.memory_timeline_frame(), self.policy_name, results_dir)

        logger.info(f"Results saved to {summary_file} and {outcomes_file}")
        return summary_file
