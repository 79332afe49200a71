"""Wireless sensor network delivery experiment."""

__version__ = "1.0.0"
