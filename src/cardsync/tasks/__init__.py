"""Maintenance tasks runnable as modules."""
