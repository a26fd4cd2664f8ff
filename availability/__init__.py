"""Availability engine: candidate grid, busy filtering, past exclusion."""

from .engine import (
    busy_interval_from_bounds,
    compute_available_slots,
    generate_candidate_slots,
    has_future_candidates,
    work_window,
)

__all__ = [
    "busy_interval_from_bounds",
    "compute_available_slots",
    "generate_candidate_slots",
    "has_future_candidates",
    "work_window",
]
