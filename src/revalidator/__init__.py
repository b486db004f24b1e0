"""Revalidation scheduler for per-section domain facts."""

__version__ = "0.1.0"
