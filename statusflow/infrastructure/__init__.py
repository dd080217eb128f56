"""Infrastructure: persistence, scheduling, engine services."""
