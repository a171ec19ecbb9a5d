"""Structured logging for the scan platform."""
