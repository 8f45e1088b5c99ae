"""Utilities: logging, tracing, spreadsheets, CSV seed loading."""
