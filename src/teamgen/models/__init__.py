"""Canonical player models shared across ingestion, balancing and the API."""

from .player import POSITIONS, Player, PlayerStats, Position

__all__ = ["POSITIONS", "Player", "PlayerStats", "Position"]
