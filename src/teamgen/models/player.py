"""Player records consumed read-only by the team balancer."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Position = Literal["Goalkeeper", "Defender", "Midfielder", "Forward"]

POSITIONS: tuple[str, ...] = ("Goalkeeper", "Defender", "Midfielder", "Forward")


class PlayerStats(BaseModel):
    """Season counters plus the ratings used for balancing."""

    skill_rating: int = Field(default=3, ge=1, le=5)
    goals: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    clean_sheets: int = Field(default=0, ge=0)
    tackles: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)
    games_played: int = Field(default=0, ge=0)
    team_wins: int = Field(default=0, ge=0)
    team_losses: int = Field(default=0, ge=0)
    team_draws: int = Field(default=0, ge=0)
    form_rating: Optional[float] = Field(default=None, ge=0.0)
    position_rating: Optional[float] = Field(default=None, ge=0.0)

    model_config = ConfigDict(frozen=True)


class Player(BaseModel):
    """Normalized club player."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    position: Position
    jersey_number: Optional[int] = Field(default=None, ge=0)
    stats: PlayerStats = Field(default_factory=PlayerStats)
    badges: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
