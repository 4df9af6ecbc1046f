"""Command-line interface for generating balanced teams from a roster CSV."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Sequence

from teamgen.balancer import TeamGenerationError, TeamGenerationRequest, generate_teams
from teamgen.config import BALANCE_METHODS, FORMATS
from teamgen.config_loader import MappingProfile
from teamgen.export import export_teams_to_csv, team_summary_lines
from teamgen.ingest import load_players_from_csv
from teamgen.persistence import ClubStore


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Split a club roster into balanced teams")
    parser.add_argument("roster", type=Path, help="Path to roster CSV")
    parser.add_argument("--format", default=None, choices=FORMATS, help="Match format (default 5-a-side)")
    parser.add_argument(
        "--method",
        default=None,
        choices=BALANCE_METHODS,
        help="Initial distribution strategy (default mixed)",
    )
    parser.add_argument("--teams", type=int, default=None, help="Number of teams to build, 2-4 (default 2)")
    parser.add_argument(
        "--ids",
        nargs="*",
        type=int,
        default=None,
        help="Player IDs to include (defaults to the whole roster)",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Ignore recorded win/loss history while balancing",
    )
    parser.add_argument(
        "--no-captains",
        action="store_true",
        help="Skip captain assignment",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible shuffles")
    parser.add_argument(
        "--team-name",
        action="append",
        default=[],
        help="Team label, repeat once per team (defaults to Team 1, Team 2, ...)",
    )
    parser.add_argument(
        "--players-column",
        action="append",
        default=[],
        help="Mapping for roster CSV columns (e.g., name=First Name|Last Name)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load mapping and defaults profile JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save mapping and defaults profile JSON", default=None)
    parser.add_argument("--output", type=Path, default=Path("teams.csv"), help="Output CSV path")
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Optional path to write roster load summary JSON",
    )
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    profile = MappingProfile.load(args.load_profile) if args.load_profile else MappingProfile()
    roster_mapping = profile.roster_mapping | _parse_mapping(args.players_column)
    match_format = args.format or profile.format or "5-a-side"
    balance_method = args.method or profile.balance_method or "mixed"
    if args.teams is not None:
        teams_count = args.teams
    else:
        teams_count = profile.teams_count or 2

    players, report = load_players_from_csv(args.roster, mapping=roster_mapping or None)
    if args.save_profile:
        MappingProfile(
            roster_mapping=roster_mapping,
            format=match_format,
            balance_method=balance_method,
            teams_count=teams_count,
        ).save(args.save_profile)
        print(f"Saved profile to {args.save_profile}")
    print(f"Loaded {report.loaded_players}/{report.total_rows} players from {args.roster}")

    if report.skipped_rows:
        preview = ", ".join(report.skipped_rows[:5])
        more = len(report.skipped_rows) - 5
        suffix = f", +{more} more" if more > 0 else ""
        print(f"Skipped rows: {preview}{suffix}")
    if args.report:
        report_payload = {
            "total_rows": report.total_rows,
            "loaded_players": report.loaded_players,
            "skipped_rows": report.skipped_rows,
            "duplicate_ids": report.duplicate_ids,
        }
        args.report.write_text(json.dumps(report_payload, indent=2), encoding="utf-8")
        print(f"Wrote roster report to {args.report}")

    store = ClubStore(players)
    player_ids = args.ids if args.ids else [player.id for player in players]
    request = TeamGenerationRequest(
        format=match_format,
        player_ids=tuple(player_ids),
        balance_method=balance_method,
        teams_count=teams_count,
        consider_history=not args.no_history,
        competition_mode=not args.no_captains,
        team_names=tuple(args.team_name) if args.team_name else None,
    )

    try:
        teams = generate_teams(request, store.get_players_by_ids, seed=args.seed)
    except TeamGenerationError as exc:
        print(f"Team generation failed: {exc}")
        return 1

    args.output.write_text(export_teams_to_csv(teams), encoding="utf-8")
    for line in team_summary_lines(teams):
        print(line)
    print(f"Wrote {len(teams)} teams to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
