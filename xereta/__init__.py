"""Xereta: third-party tracking and canvas fingerprinting analysis for a browser tab."""

__version__ = "0.1.0"
