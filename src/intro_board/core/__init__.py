"""Core configuration, errors and security helpers."""
