"""Application services (pure validation and helpers)."""
