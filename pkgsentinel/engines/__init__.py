"""Audit engines."""
