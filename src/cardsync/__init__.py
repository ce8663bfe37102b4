"""Offline-first card cache synchronization and first-run reconciliation."""

__version__ = "0.1.0"
