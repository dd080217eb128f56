"""Application ports (Protocols)."""
