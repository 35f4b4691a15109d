"""Core types, events and exceptions shared across the worker."""
