from revalidator.scheduler.backoff import FailureTracker, backoff_ms_for_attempts
from revalidator.scheduler.cleanup import CleanupResult, OrphanCleanup
from revalidator.scheduler.dead_letter import DeadLetterQueue
from revalidator.scheduler.drain import DrainEvent, DrainLoop, DrainResult
from revalidator.scheduler.due_queue import DueQueue
from revalidator.scheduler.leases import LeaseStore
from revalidator.scheduler.propagation import DependencyPropagator
from revalidator.scheduler.revalidation_scheduler import RevalidationScheduler
from revalidator.scheduler.scheduler_config import SchedulerConfig

__all__ = [
    "CleanupResult",
    "DeadLetterQueue",
    "DependencyPropagator",
    "DrainEvent",
    "DrainLoop",
    "DrainResult",
    "DueQueue",
    "FailureTracker",
    "LeaseStore",
    "OrphanCleanup",
    "RevalidationScheduler",
    "SchedulerConfig",
    "backoff_ms_for_attempts",
]
