"""HTTP API (FastAPI) over the ledger, history, reconciliation and snapshot services."""
