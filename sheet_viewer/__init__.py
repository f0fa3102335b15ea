"""Inference and navigation engine for spreadsheet-exported CSV itineraries."""

__version__ = "0.1.0"
