"""Feature modules for cadence-migrate."""
