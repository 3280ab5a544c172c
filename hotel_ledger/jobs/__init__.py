"""
Background Jobs Module

Handles scheduled tasks for:
- Ledger reconciliation (vendor balances, invoice totals)
"""

from hotel_ledger.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler, reconcile_ledger_job

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "reconcile_ledger_job",
]
