"""Core primitives: enums, errors, clock, database and logging."""
