"""External interfaces: HTTP API and notification delivery."""
