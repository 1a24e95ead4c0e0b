"""Pomoquest - rule engine for a gamified focus timer."""

__version__ = "0.1.0"
