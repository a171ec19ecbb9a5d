"""Control Packaging: scan event recording and queries for packaging units."""

__version__ = "0.1.0"
