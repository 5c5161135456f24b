"""Core configuration, logging and query engine."""
