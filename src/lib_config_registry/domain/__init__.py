"""Domain layer: value objects, name rules and the error taxonomy (no I/O)."""
