from .errors import DuplicateRequest, EmptyWorkerPool, InvalidAmount, SchedulingError
from .ledger import TimelineLedger
from .models import InvocationOutcome, InvocationRequest, InvocationState, LedgerEvent, Worker, create_worker_pool
from .placement import ModuloHashPlacement, PlacementPolicy, RoundRobinPlacement, make_placement_policy
from .scheduler import InvocationScheduler
from .warm_pool import WarmPoolTracker

__version__ = "0.1.0"
