"""In-memory store for the club roster, match history and saved team runs."""

from __future__ import annotations

import json
import os
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from uuid import uuid4

from teamgen.balancer import NotFoundError
from teamgen.config import LEADERBOARD_CATEGORIES
from teamgen.models import Player, PlayerStats


ROSTER_PATH_ENV = "TEAMGEN_ROSTER_PATH"


@dataclass
class TeamRunRecord:
    run_id: str
    created_at: datetime
    request: dict
    teams: List[dict]


@dataclass
class ResultUpdate:
    updated: int
    skipped_ids: List[int]


class ClubStore:
    """Thread-safe in-memory replacement for a club database."""

    def __init__(self, players: Iterable[Player] | None = None):
        self._lock = threading.RLock()
        self._players: dict[int, Player] = {}
        self._runs: dict[str, TeamRunRecord] = {}
        self._next_id = 1
        if players is not None:
            self.replace_roster(players)

    @classmethod
    def from_env(cls) -> "ClubStore":
        store = cls()
        env_path = os.getenv(ROSTER_PATH_ENV)
        if env_path:
            store.load_snapshot(Path(env_path))
        return store

    def list_players(self) -> List[Player]:
        with self._lock:
            return sorted(self._players.values(), key=lambda player: player.id)

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._lock:
            return self._players.get(player_id)

    def get_players_by_ids(self, player_ids: Sequence[int]) -> List[Player]:
        """Return players in the requested order, raising NotFoundError for any gap."""

        with self._lock:
            missing = [pid for pid in player_ids if pid not in self._players]
            if missing:
                raise NotFoundError(missing)
            return [self._players[pid] for pid in player_ids]

    def create_player(self, data: Mapping[str, Any]) -> Player:
        with self._lock:
            payload = dict(data)
            payload["id"] = self._next_id
            player = Player.model_validate(payload)
            self._players[player.id] = player
            self._next_id += 1
            return player

    def update_player(self, player_id: int, changes: Mapping[str, Any]) -> Optional[Player]:
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                return None
            payload = player.model_dump()
            payload.update({key: value for key, value in changes.items() if key != "id"})
            updated = Player.model_validate(payload)
            self._players[player_id] = updated
            return updated

    def update_player_stats(self, player_id: int, changes: Mapping[str, Any]) -> Optional[Player]:
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                return None
            stats = PlayerStats.model_validate({**player.stats.model_dump(), **changes})
            updated = player.model_copy(update={"stats": stats})
            self._players[player_id] = updated
            return updated

    def delete_player(self, player_id: int) -> bool:
        with self._lock:
            return self._players.pop(player_id, None) is not None

    def replace_roster(self, players: Iterable[Player]) -> int:
        roster = list(players)
        duplicates = sorted(pid for pid, count in Counter(player.id for player in roster).items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate player ids in roster: {', '.join(str(pid) for pid in duplicates)}")
        with self._lock:
            self._players = {player.id: player for player in roster}
            self._next_id = max(self._players, default=0) + 1
            return len(self._players)

    def leaderboard(self, category: str, limit: int | None = None) -> List[Player]:
        if category not in LEADERBOARD_CATEGORIES:
            raise KeyError(f"Unknown leaderboard category {category!r}")
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        ranked = sorted(
            self.list_players(),
            key=lambda player: getattr(player.stats, category),
            reverse=True,
        )
        return ranked[:limit] if limit is not None else ranked

    def record_team_result(
        self,
        team_player_ids: Sequence[Sequence[int]],
        *,
        winning_team_index: int | None,
        is_draw: bool = False,
    ) -> ResultUpdate:
        """Bump win/loss/draw counters and games played for every listed player."""

        updated = 0
        skipped: List[int] = []
        with self._lock:
            for team_idx, player_ids in enumerate(team_player_ids):
                for player_id in player_ids:
                    player = self._players.get(player_id)
                    if player is None:
                        skipped.append(player_id)
                        continue
                    stats = player.stats
                    if is_draw:
                        changes = {"team_draws": stats.team_draws + 1}
                    elif team_idx == winning_team_index:
                        changes = {"team_wins": stats.team_wins + 1}
                    else:
                        changes = {"team_losses": stats.team_losses + 1}
                    changes["games_played"] = stats.games_played + 1
                    self._players[player_id] = player.model_copy(
                        update={"stats": stats.model_copy(update=changes)}
                    )
                    updated += 1
        return ResultUpdate(updated=updated, skipped_ids=skipped)

    def save_teams(
        self,
        *,
        request: dict,
        teams: Iterable[dict],
        created_at: Optional[datetime] = None,
    ) -> TeamRunRecord:
        record = TeamRunRecord(
            run_id=uuid4().hex,
            created_at=created_at or datetime.now(timezone.utc),
            request=dict(request),
            teams=[dict(team) for team in teams],
        )
        with self._lock:
            self._runs[record.run_id] = record
        return record

    def get_run(self, run_id: str) -> Optional[TeamRunRecord]:
        with self._lock:
            return self._runs.get(run_id)

    def list_runs(self, limit: int = 50) -> List[TeamRunRecord]:
        with self._lock:
            runs = sorted(self._runs.values(), key=lambda run: run.created_at, reverse=True)
        return runs[:limit]

    def load_snapshot(self, path: Path) -> int:
        data = json.loads(path.read_text(encoding="utf-8"))
        entries = data.get("players", []) if isinstance(data, dict) else data
        return self.replace_roster(Player.model_validate(entry) for entry in entries)

    def save_snapshot(self, path: Path) -> None:
        payload = {"players": [player.model_dump() for player in self.list_players()]}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


__all__ = ["ClubStore", "ResultUpdate", "TeamRunRecord", "ROSTER_PATH_ENV"]
