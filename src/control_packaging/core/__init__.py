"""Core primitives shared by every layer: config, enums, errors, ids, clock."""
