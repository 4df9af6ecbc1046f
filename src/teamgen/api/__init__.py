"""REST API for the club team generator."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from teamgen.api.schemas import (
    GeneratedTeamResponse,
    PlayerCreateRequest,
    PlayerUpdateRequest,
    RecordResultRequest,
    RecordResultResponse,
    RosterImportResponse,
    RosterReplaceRequest,
    SaveTeamsRequest,
    StatsUpdateRequest,
    TeamGenerationPayload,
    TeamGenerationResponse,
    TeamRunResponse,
)
from teamgen.balancer import (
    InsufficientPlayersError,
    InvalidConfigError,
    NotFoundError,
    generate_teams,
)
from teamgen.export import TeamExportError, export_teams_to_csv
from teamgen.ingest import load_players_from_csv
from teamgen.models import Player
from teamgen.persistence import ClubStore, TeamRunRecord


def _parse_mapping(mapping_str: str | None) -> dict[str, str]:
    if not mapping_str:
        return {}
    try:
        mapping = json.loads(mapping_str)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid mapping JSON: {exc}") from exc
    if not isinstance(mapping, dict):
        raise HTTPException(status_code=400, detail="Mapping must be a JSON object")
    return {str(key): str(value) for key, value in mapping.items()}


async def _write_temp(upload: UploadFile | None) -> Path | None:
    if upload is None:
        return None
    contents = await upload.read()
    if not contents:
        return None
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
    try:
        tmp.write(contents)
        tmp.flush()
    finally:
        tmp.close()
    return Path(tmp.name)


def run_record_to_response(run: TeamRunRecord) -> TeamRunResponse:
    return TeamRunResponse(
        run_id=run.run_id,
        created_at=run.created_at,
        request=run.request,
        teams=[GeneratedTeamResponse.model_validate(team) for team in run.teams],
    )


def create_app(store: ClubStore | None = None) -> FastAPI:
    app = FastAPI(title="teamgen")
    store = store if store is not None else ClubStore.from_env()
    app.state.club_store = store

    def _fetch_player_or_404(player_id: int) -> Player:
        player = store.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return player

    def _fetch_run_or_404(run_id: str) -> TeamRunRecord:
        run = store.get_run(run_id)
        if run is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return run

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/players", response_model=list[Player])
    async def list_players() -> list[Player]:
        return store.list_players()

    @app.post("/players", response_model=Player, status_code=201)
    async def create_player(payload: PlayerCreateRequest) -> Player:
        return store.create_player(payload.model_dump())

    @app.post("/players/import", response_model=RosterImportResponse)
    async def import_players(
        roster: UploadFile = File(...),
        mapping: str | None = Form(None),
        replace: bool = Form(False),
    ) -> RosterImportResponse:
        roster_path = await _write_temp(roster)
        if roster_path is None:
            raise HTTPException(status_code=400, detail="roster file is empty")
        try:
            players, report = load_players_from_csv(roster_path, mapping=_parse_mapping(mapping) or None)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        finally:
            roster_path.unlink(missing_ok=True)

        if replace:
            store.replace_roster(players)
            stored = players
        else:
            stored = [
                store.create_player(player.model_dump(exclude={"id"}))
                for player in players
            ]
        return RosterImportResponse(
            total_rows=report.total_rows,
            loaded_players=report.loaded_players,
            skipped_rows=report.skipped_rows,
            duplicate_ids=report.duplicate_ids,
            players=stored,
        )

    @app.post("/players/roster")
    async def replace_roster(payload: RosterReplaceRequest) -> dict[str, Any]:
        ids = [player.id for player in payload.players]
        if len(ids) != len(set(ids)):
            raise HTTPException(status_code=400, detail="Roster contains duplicate player ids")
        count = store.replace_roster(payload.players)
        return {"message": "Roster saved successfully", "players": count}

    @app.get("/players/leaderboard/{category}", response_model=list[Player])
    async def leaderboard(category: str, limit: int | None = Query(None, ge=1)) -> list[Player]:
        try:
            return store.leaderboard(category, limit=limit)
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown leaderboard category {category!r}") from exc

    @app.get("/players/{player_id}", response_model=Player)
    async def get_player(player_id: int) -> Player:
        return _fetch_player_or_404(player_id)

    @app.put("/players/{player_id}", response_model=Player)
    async def update_player(player_id: int, payload: PlayerUpdateRequest) -> Player:
        _fetch_player_or_404(player_id)
        changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
        updated = store.update_player(player_id, changes)
        if updated is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return updated

    @app.patch("/players/{player_id}/stats", response_model=Player)
    async def update_player_stats(player_id: int, payload: StatsUpdateRequest) -> Player:
        changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
        updated = store.update_player_stats(player_id, changes)
        if updated is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return updated

    @app.delete("/players/{player_id}")
    async def delete_player(player_id: int) -> dict[str, str]:
        if not store.delete_player(player_id):
            raise HTTPException(status_code=404, detail="Player not found")
        return {"message": "Player deleted successfully"}

    @app.post("/team-generator", response_model=TeamGenerationResponse)
    async def team_generator(payload: TeamGenerationPayload) -> TeamGenerationResponse:
        try:
            teams = generate_teams(payload.to_request(), store.get_players_by_ids, seed=payload.seed)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InsufficientPlayersError as exc:
            raise HTTPException(
                status_code=400,
                detail={"message": str(exc), "minimum": exc.minimum, "available": exc.available},
            ) from exc
        except InvalidConfigError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return TeamGenerationResponse(
            format=payload.format,
            balance_method=payload.balance_method,
            teams=[GeneratedTeamResponse.from_team(team) for team in teams],
        )

    @app.post("/team-generator/save", response_model=TeamRunResponse)
    async def save_teams(payload: SaveTeamsRequest) -> TeamRunResponse:
        run = store.save_teams(
            request=payload.request,
            teams=[team.model_dump() for team in payload.teams],
        )
        return run_record_to_response(run)

    @app.get("/team-generator/runs")
    async def list_runs(limit: int = 50) -> list[dict[str, Any]]:
        return [
            {
                "run_id": run.run_id,
                "created_at": run.created_at.isoformat(),
                "teams": [team["name"] for team in run.teams],
                "players": sum(len(team["players"]) for team in run.teams),
            }
            for run in store.list_runs(limit=limit)
        ]

    @app.get("/team-generator/runs/{run_id}", response_model=TeamRunResponse)
    async def get_run(run_id: str) -> TeamRunResponse:
        return run_record_to_response(_fetch_run_or_404(run_id))

    @app.get("/team-generator/runs/{run_id}/export.csv")
    async def export_run(run_id: str):
        run = run_record_to_response(_fetch_run_or_404(run_id))
        try:
            csv_text = export_teams_to_csv([team.to_team() for team in run.teams])
        except TeamExportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={run_id}.csv"},
        )

    @app.post("/team-generator/record-result", response_model=RecordResultResponse)
    async def record_result(payload: RecordResultRequest) -> RecordResultResponse:
        outcome = store.record_team_result(
            [[player.id for player in team.players] for team in payload.teams],
            winning_team_index=payload.winning_team_index,
            is_draw=payload.is_draw,
        )
        return RecordResultResponse(
            message="Match result recorded successfully",
            updated_players=outcome.updated,
            skipped_player_ids=outcome.skipped_ids,
        )

    return app
