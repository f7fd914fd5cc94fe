"""Clearance negotiation: state machine and application service."""

from __future__ import annotations

from .service import ClearanceService, ClearanceStatistics, StatisticsScope
from .state_machine import ALLOWED_TRANSITIONS, RULES, Terms, TransitionRule, can_transition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "RULES",
    "ClearanceService",
    "ClearanceStatistics",
    "StatisticsScope",
    "Terms",
    "TransitionRule",
    "can_transition",
]
