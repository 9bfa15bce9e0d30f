import logging
import random
from typing import List

import pandas as pd

from .config import (
    NUM_INVOCATIONS, NUM_FUNCTION_TYPES, INVOCATION_INTERVAL,
    MIN_INVOCATION_INTERVAL, MAX_INVOCATION_INTERVAL, RANDOM_SEED
)
from .models import InvocationRequest

logger = logging.getLogger(__name__)

TRACE_COLUMNS = ["request_id", "function_type", "arrival_time"]


def build_execution_schedule(count: int = NUM_INVOCATIONS, num_function_types: int = NUM_FUNCTION_TYPES,
                             interval: float = INVOCATION_INTERVAL) -> List[InvocationRequest]:
    """
    Fixed schedule: request i invokes function type i % num_function_types at i * interval.
    """
    if num_function_types <= 0:
        raise ValueError(f"num_function_types must be positive, got {num_function_types}")
    return [InvocationRequest(i % num_function_types, i * interval, i) for i in range(count)]


def generate_random_workload(count: int = NUM_INVOCATIONS, num_function_types: int = NUM_FUNCTION_TYPES,
                             min_interval: float = MIN_INVOCATION_INTERVAL,
                             max_interval: float = MAX_INVOCATION_INTERVAL,
                             seed: int = RANDOM_SEED) -> List[InvocationRequest]:
    """
    Random workload with uniform inter-arrival gaps and uniformly chosen function types.
    The same seed always yields the same requests.
    """
    if num_function_types <= 0:
        raise ValueError(f"num_function_types must be positive, got {num_function_types}")
    if min_interval < 0 or max_interval < min_interval:
        raise ValueError(f"invalid interval bounds [{min_interval}, {max_interval}]")

    rng = random.Random(seed)
    requests = []
    current_time = 0.0
    for i in range(count):
        requests.append(InvocationRequest(rng.randrange(num_function_types), current_time, i))
        current_time += rng.uniform(min_interval, max_interval)
    logger.debug(f"Generated {count} random invocations over {current_time:.2f}s")
    return requests


def load_invocation_trace(path) -> List[InvocationRequest]:
    """
    Reads invocations from a CSV file with `request_id`, `function_type` and
    `arrival_time` columns. Extra columns are ignored.
    """
    df = pd.read_csv(path)
    missing = [column for column in TRACE_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Invocation trace {path} is missing columns: {missing}")

    requests = [
        InvocationRequest(int(row.function_type), float(row.arrival_time), int(row.request_id))
        for row in df[TRACE_COLUMNS].itertuples(index=False)
    ]
    logger.info(f"Loaded {len(requests)} invocations from {path}")
    return requests
