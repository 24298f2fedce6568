"""Read-only HTTP API over the scheduler, ledger and activity log."""
