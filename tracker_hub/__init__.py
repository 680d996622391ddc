"""Tracker Hub: prompt-driven content trackers."""

__version__ = "0.1.0"
