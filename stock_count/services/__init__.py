"""Domain services: branch resolution, ledger, history, reconciliation, snapshots, metrics."""
