"""Logging, timing and error tracking helpers."""
