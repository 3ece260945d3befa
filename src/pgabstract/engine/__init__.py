"""Execution hand-off helpers."""
