"""Durable storage for the scan sequence."""
