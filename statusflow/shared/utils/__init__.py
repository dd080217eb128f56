"""Utility helpers (datetime, id generation)."""

from statusflow.shared.utils.datetime import ensure_utc, to_epoch_ms, utc_now
from statusflow.shared.utils.generators import generate_cuid

__all__ = ["ensure_utc", "generate_cuid", "to_epoch_ms", "utc_now"]
