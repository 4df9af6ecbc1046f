"""Configuration helpers for match formats and balancing constants."""

from .formats import (
    BALANCE_METHODS,
    FORMATS,
    LEADERBOARD_CATEGORIES,
    FormatRules,
    get_format,
    iter_formats,
)

__all__ = [
    "BALANCE_METHODS",
    "FORMATS",
    "LEADERBOARD_CATEGORIES",
    "FormatRules",
    "get_format",
    "iter_formats",
]
