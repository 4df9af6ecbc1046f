"""Pydantic models for API I/O."""

from .player import (
    PlayerCreateRequest,
    PlayerUpdateRequest,
    RosterImportResponse,
    RosterReplaceRequest,
    StatsUpdateRequest,
)
from .teams import (
    GeneratedTeamResponse,
    RecordResultRequest,
    RecordResultResponse,
    SaveTeamsRequest,
    TeamGenerationPayload,
    TeamGenerationResponse,
    TeamRunResponse,
)

__all__ = [
    "PlayerCreateRequest",
    "PlayerUpdateRequest",
    "RosterImportResponse",
    "RosterReplaceRequest",
    "StatsUpdateRequest",
    "GeneratedTeamResponse",
    "RecordResultRequest",
    "RecordResultResponse",
    "SaveTeamsRequest",
    "TeamGenerationPayload",
    "TeamGenerationResponse",
    "TeamRunResponse",
]
