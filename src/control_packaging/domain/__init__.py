"""Domain layer: scan records, request drafts, and validation rules.

Everything here is immutable.
"""
