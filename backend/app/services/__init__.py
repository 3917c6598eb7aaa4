"""Aggregation and background services."""
