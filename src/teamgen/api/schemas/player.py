from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from teamgen.models import Player, PlayerStats, Position


class PlayerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    position: Position
    jersey_number: Optional[int] = Field(default=None, ge=0)
    stats: PlayerStats = Field(default_factory=PlayerStats)
    badges: List[str] = Field(default_factory=list)


class PlayerUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[Position] = None
    jersey_number: Optional[int] = Field(default=None, ge=0)
    stats: Optional[PlayerStats] = None
    badges: Optional[List[str]] = None


class StatsUpdateRequest(BaseModel):
    skill_rating: Optional[int] = Field(default=None, ge=1, le=5)
    goals: Optional[int] = Field(default=None, ge=0)
    assists: Optional[int] = Field(default=None, ge=0)
    clean_sheets: Optional[int] = Field(default=None, ge=0)
    tackles: Optional[int] = Field(default=None, ge=0)
    saves: Optional[int] = Field(default=None, ge=0)
    games_played: Optional[int] = Field(default=None, ge=0)
    team_wins: Optional[int] = Field(default=None, ge=0)
    team_losses: Optional[int] = Field(default=None, ge=0)
    team_draws: Optional[int] = Field(default=None, ge=0)
    form_rating: Optional[float] = Field(default=None, ge=0.0)
    position_rating: Optional[float] = Field(default=None, ge=0.0)


class RosterReplaceRequest(BaseModel):
    players: List[Player]


class RosterImportResponse(BaseModel):
    total_rows: int
    loaded_players: int
    skipped_rows: List[str]
    duplicate_ids: List[int]
    players: List[Player]
