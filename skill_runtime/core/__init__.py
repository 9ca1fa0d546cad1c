"""Core runtime: configuration, logging and the skills subsystem."""
