"""Capability-loading runtime for pluggable LLM agent skills."""

__version__ = "0.1.0"
