"""Storage layer for invocation records."""
