"""Weighted progress aggregation for Mission hierarchies."""

__version__ = "0.1.0"
