"""Intro Board: anonymous self-introduction board with moderation."""

__version__ = "0.1.0"
