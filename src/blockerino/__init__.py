"""Blockerino: block-placement puzzle session engine."""

__version__ = "0.1.0"
