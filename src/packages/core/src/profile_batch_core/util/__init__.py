"""Utility modules."""
from profile_batch_core.util.ids import generate_id
from profile_batch_core.util.pacing import Pacer
from profile_batch_core.util.time import utc_now, utc_now_iso, to_iso, parse_iso

__all__ = ["generate_id", "Pacer", "utc_now", "utc_now_iso", "to_iso", "parse_iso"]
