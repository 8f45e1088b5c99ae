"""Branch inventory counting, ledger and ERP reconciliation."""

__version__ = "0.1.0"
