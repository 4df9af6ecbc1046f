from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from teamgen.balancer import GeneratedTeam, TeamGenerationRequest
from teamgen.models import Player


class TeamGenerationPayload(BaseModel):
    format: Literal["5-a-side", "7-a-side", "11-a-side"]
    player_ids: List[int] = Field(..., min_length=1)
    balance_method: Literal["skill", "position", "mixed"] = "mixed"
    teams_count: int = Field(default=2, ge=2, le=4)
    consider_history: bool = True
    competition_mode: bool = True
    team_names: Optional[List[str]] = None
    seed: Optional[int] = None

    def to_request(self) -> TeamGenerationRequest:
        return TeamGenerationRequest(
            format=self.format,
            player_ids=tuple(self.player_ids),
            balance_method=self.balance_method,
            teams_count=self.teams_count,
            consider_history=self.consider_history,
            competition_mode=self.competition_mode,
            team_names=tuple(self.team_names) if self.team_names is not None else None,
        )


class GeneratedTeamResponse(BaseModel):
    name: str
    players: List[Player]
    captain: Optional[Player] = None
    total_skill: int
    position_balance: float
    average_win_rate: float

    @classmethod
    def from_team(cls, team: GeneratedTeam) -> "GeneratedTeamResponse":
        return cls(
            name=team.name,
            players=list(team.players),
            captain=team.captain,
            total_skill=team.total_skill,
            position_balance=team.position_balance,
            average_win_rate=team.average_win_rate,
        )

    def to_team(self) -> GeneratedTeam:
        return GeneratedTeam(
            name=self.name,
            players=tuple(self.players),
            total_skill=self.total_skill,
            position_balance=self.position_balance,
            average_win_rate=self.average_win_rate,
            captain=self.captain,
        )


class TeamGenerationResponse(BaseModel):
    format: str
    balance_method: str
    teams: List[GeneratedTeamResponse]


class SaveTeamsRequest(BaseModel):
    request: dict = Field(default_factory=dict)
    teams: List[GeneratedTeamResponse] = Field(..., min_length=1)


class TeamRunResponse(BaseModel):
    run_id: str
    created_at: datetime
    request: dict
    teams: List[GeneratedTeamResponse]


class PlayerRef(BaseModel):
    id: int


class ResultTeam(BaseModel):
    name: str
    players: List[PlayerRef]


class RecordResultRequest(BaseModel):
    teams: List[ResultTeam] = Field(..., min_length=2)
    winning_team_index: Optional[int] = Field(default=None, ge=0)
    is_draw: bool = False

    @model_validator(mode="after")
    def _check_winner(self) -> "RecordResultRequest":
        if self.is_draw:
            return self
        if self.winning_team_index is None:
            raise ValueError("winning_team_index is required unless is_draw is set")
        if self.winning_team_index >= len(self.teams):
            raise ValueError("winning_team_index is out of range")
        return self


class RecordResultResponse(BaseModel):
    message: str
    updated_players: int
    skipped_player_ids: List[int]
