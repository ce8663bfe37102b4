"""Card synchronization, first-run reconciliation, and session wiring."""
