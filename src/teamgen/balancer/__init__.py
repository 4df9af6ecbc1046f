"""Team balancing: distribution, rebalancing and captaincy."""

from .service import (
    GeneratedTeam,
    InsufficientPlayersError,
    InvalidConfigError,
    NotFoundError,
    PlayerMetrics,
    TeamGenerationError,
    TeamGenerationRequest,
    compute_player_metrics,
    generate_teams,
)

__all__ = [
    "GeneratedTeam",
    "InsufficientPlayersError",
    "InvalidConfigError",
    "NotFoundError",
    "PlayerMetrics",
    "TeamGenerationError",
    "TeamGenerationRequest",
    "compute_player_metrics",
    "generate_teams",
]
