"""Typed view models returned by the service layer."""
