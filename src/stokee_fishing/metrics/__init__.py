"""Session metrics: fish counts, trips, experience and coin value."""

from .metrics_service import (
    MetricsService,
    MetricsSnapshot,
    format_duration,
    format_gp,
    format_number,
)
from .prices import GEItemPrice, GrandExchangeClient, PriceLookup, calculate_total_value, parse_price
from .skill_session import SkillSession

__all__ = [
    "MetricsService",
    "MetricsSnapshot",
    "format_duration",
    "format_gp",
    "format_number",
    "GEItemPrice",
    "GrandExchangeClient",
    "PriceLookup",
    "calculate_total_value",
    "parse_price",
    "SkillSession",
]
