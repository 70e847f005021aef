"""Task utilities for ranking generation runs."""

from tennisrank.tasks.locks import RunLockBusy, advisory_lock_key, ranking_lock_name, ranking_run_lock

__all__ = [
    "RunLockBusy",
    "advisory_lock_key",
    "ranking_lock_name",
    "ranking_run_lock",
]
