"""Domain layer: business vocabularies, entities and exceptions (no persistence)."""
