"""Shared parsing and arithmetic helpers."""
