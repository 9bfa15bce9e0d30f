import logging

from lambdasim.simulator import Simulator
from lambdasim.config import (
    WORKER_MEMORY_CAPACITIES, PLACEMENT_STRATEGIES, WARM_WINDOWS_TO_COMPARE, COLD_START_DURATION,
    WARM_START_DURATION, INVOCATION_MEMORY_MB, INVOCATION_MEMORY_FRACTION, NUM_FUNCTION_TYPES,
    RESULTS_DIR, RANDOM_SEED
)
from lambdasim.results import plotting
from lambdasim.workload import generate_random_workload

memory_variants = [
    ("fixed", {"invocation_memory": INVOCATION_MEMORY_MB}),
    ("fraction", {"memory_fraction": INVOCATION_MEMORY_FRACTION}),
]


def run_comparison(invocation_count: int = 200, results_dir: str = RESULTS_DIR, make_plots: bool = True):
    invocations = generate_random_workload(invocation_count, NUM_FUNCTION_TYPES, seed=RANDOM_SEED)
    comparison_results = []

    for strategy in PLACEMENT_STRATEGIES:
        for warm_window in WARM_WINDOWS_TO_COMPARE:
            for memory_name, memory_kwargs in memory_variants:
                run_label = f"{strategy}_warm{warm_window:g}s_{memory_name}"
                print(f"\n=== Running: Placement={strategy}, Warm Window={warm_window}s, Memory={memory_name} ===")

                simulator = Simulator(
                    memory_capacities=WORKER_MEMORY_CAPACITIES,
                    placement_strategy=strategy,
                    warm_window_seconds=warm_window,
                    cold_start_duration=COLD_START_DURATION,
                    warm_start_duration=WARM_START_DURATION,
                    invocations=invocations,
                    run_label=run_label,
                    **memory_kwargs
                )
                simulator.run_simulation()
                simulator.print_summary()
                simulator.save_results(results_dir, make_plots=make_plots)

                comparison_results.append({
                    "policy_name": run_label,
                    "cold_starts": simulator.stats.cold_starts,
                    "warm_starts": simulator.stats.warm_starts,
                    "warm_hit_rate": simulator.stats.get_warm_hit_rate(),
                    "makespan": simulator.stats.makespan,
                    "requests_per_worker": simulator.stats.requests_per_worker,
                    "peak_memory_per_worker": simulator.stats.peak_memory_per_worker,
                })

    if make_plots:
        print("\n=== Generating Final Comparison Plots ===")
        plotting.plot_comparison_results(comparison_results, results_dir)
        plotting.generate_pdf_report_from_summary(results_dir)
        print(f"Comparison plots generated in the '{results_dir}' directory.")
    return comparison_results


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_comparison()
