"""Core infrastructure: configuration, logging, storage, scheduling."""
