"""Use cases orchestrating repositories and engine services."""
