"""DTOs for use cases (no dependency on ORM or presentation schemas)."""
