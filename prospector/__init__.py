"""Prospector - company list access and membership engine."""
__version__ = "1.0.0"
