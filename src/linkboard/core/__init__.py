"""Core configuration, errors and credential helpers."""
