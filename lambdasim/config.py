# --- Worker Pool ---
NUM_WORKERS = 5
WORKER_MEMORY_MB = 512.0             # RAM of each simulated VM
WORKER_CPU_MIPS = 1000.0
WORKER_MEMORY_CAPACITIES = [WORKER_MEMORY_MB] * NUM_WORKERS

# --- Warm Pool ---
WARM_WINDOW_SECONDS = 300.0          # keep-alive after the last invocation on a worker

# --- Execution ---
COLD_START_DURATION = 50.0           # load + init overhead included
WARM_START_DURATION = 40.0           # init overhead skipped

# --- Memory Footprint ---
INVOCATION_MEMORY_MB = 128.0
INVOCATION_MEMORY_FRACTION = 0.4     # share of the worker's RAM for the fractional variant

# --- Policies ---
PLACEMENT_STRATEGY = "modulo-hash"
PLACEMENT_STRATEGIES = ["modulo-hash", "round-robin"]

# --- Workload ---
NUM_INVOCATIONS = 10
NUM_FUNCTION_TYPES = 3
INVOCATION_INTERVAL = 50.0
MIN_INVOCATION_INTERVAL = 1.0
MAX_INVOCATION_INTERVAL = 120.0

# --- Sweeps ---
WARM_WINDOWS_TO_COMPARE = [5.0, WARM_WINDOW_SECONDS]

# --- Misc ---
RESULTS_DIR = "results"
RANDOM_SEED = 42
