"""Answers questions from caller-supplied web sources."""

__version__ = "0.1.0"
