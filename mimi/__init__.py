"""Mimi watchlist analytics — technical indicators, signals and composite scores."""

__version__ = "0.3.0"
