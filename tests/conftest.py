import matplotlib
import pytest

from lambdasim.models import create_worker_pool
from lambdasim.scheduler import InvocationScheduler

matplotlib.use("Agg")


@pytest.fixture(scope="function")
def workers():
    return create_worker_pool([512, 512, 512, 512, 512])


@pytest.fixture(scope="function")
def two_workers():
    return create_worker_pool([512, 512])


@pytest.fixture(scope="function")
def make_scheduler():
    def _make(pool, placement="modulo-hash", warm_window=300.0, cold=50.0, warm=40.0, **memory):
        if not memory:
            memory = {"invocation_memory": 128.0}
        return InvocationScheduler(pool, placement, warm_window, cold, warm, **memory)

    return _make

