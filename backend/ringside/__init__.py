"""Ringside: competition structuring core for single-elimination martial-arts tournaments."""

__version__ = "1.0.0"
