"""CSV and text export helpers for generated teams."""

from __future__ import annotations

import csv
from io import StringIO
from typing import List, Sequence

from teamgen.balancer import GeneratedTeam


class TeamExportError(RuntimeError):
    """Raised when a team set cannot be exported."""


EXPORT_HEADERS: tuple[str, ...] = ("team", "player_id", "name", "position", "skill_rating", "captain")


def export_teams_to_csv(teams: Sequence[GeneratedTeam]) -> str:
    """One row per player, grouped by team in generation order."""

    seen: set[int] = set()
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)

    for team in teams:
        captain_id = team.captain.id if team.captain is not None else None
        for player in team.players:
            if player.id in seen:
                raise TeamExportError(f"Player {player.id} appears in more than one team")
            seen.add(player.id)
            writer.writerow([
                team.name,
                player.id,
                player.name,
                player.position,
                player.stats.skill_rating,
                "yes" if player.id == captain_id else "",
            ])

    return buffer.getvalue()


def team_summary_lines(teams: Sequence[GeneratedTeam]) -> List[str]:
    lines: List[str] = []
    for team in teams:
        captain = team.captain.name if team.captain is not None else "-"
        lines.append(
            f"{team.name}: {team.size} players, skill {team.total_skill}, "
            f"position balance {team.position_balance:.1f}, win rate {team.average_win_rate:.1f}%, "
            f"captain {captain}"
        )
        for player in team.players:
            lines.append(f"  {player.position:<10} {player.name} ({player.stats.skill_rating})")
    return lines


__all__ = [
    "EXPORT_HEADERS",
    "TeamExportError",
    "export_teams_to_csv",
    "team_summary_lines",
]
