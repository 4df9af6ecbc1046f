"""Lightweight REST client for the teamgen API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def build_mapping(raw: str) -> dict[str, str]:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid mapping JSON: {exc}") from exc


def _parse_teams(raw: str) -> list[dict]:
    # "1,2,3;4,5,6" -> two teams of player ids
    teams = []
    for idx, chunk in enumerate(raw.split(";"), start=1):
        ids = [int(part) for part in chunk.split(",") if part.strip()]
        teams.append({"name": f"Team {idx}", "players": [{"id": pid} for pid in ids]})
    return teams


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the teamgen REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--import-roster", type=Path, help="Upload a roster CSV before anything else")
    parser.add_argument("--mapping", default="", help="JSON mapping for roster columns")
    parser.add_argument("--replace", action="store_true", help="Replace the roster on import")
    parser.add_argument("--list-players", action="store_true", help="List players and exit")
    parser.add_argument("--format", default="5-a-side", help="Match format")
    parser.add_argument("--method", default="mixed", help="Balance method")
    parser.add_argument("--teams", type=int, default=2, help="Number of teams")
    parser.add_argument("--ids", nargs="*", type=int, help="Player IDs (defaults to every player)")
    parser.add_argument("--seed", type=int, default=None, help="Seed forwarded to the generator")
    parser.add_argument("--save", action="store_true", help="Save the generated teams as a run")
    parser.add_argument(
        "--record-result",
        metavar="TEAMS",
        help="Record a result for teams given as '1,2,3;4,5,6' and exit",
    )
    parser.add_argument("--winner", type=int, default=None, help="Winning team index for --record-result")
    parser.add_argument("--draw", action="store_true", help="Record the result as a draw")
    parser.add_argument("--list-runs", action="store_true", help="List saved runs and exit")
    parser.add_argument("--get-run", metavar="RUN_ID", help="Fetch a saved run and exit")
    parser.add_argument("--export-run", metavar="RUN_ID", help="Download team CSV for a run")
    parser.add_argument("--export-path", type=Path, help="Destination path for exported CSV")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.import_roster:
            files = {"roster": (args.import_roster.name, args.import_roster.read_bytes(), "text/csv")}
            mapping = build_mapping(args.mapping)
            data = {"replace": str(args.replace).lower()}
            if mapping:
                data["mapping"] = json.dumps(mapping)
            resp = client.post("/players/import", files=files, data=data)
            resp.raise_for_status()
            report = resp.json()
            print(
                f"Imported {report['loaded_players']}/{report['total_rows']} players "
                f"({len(report['skipped_rows'])} skipped)"
            )

        if args.list_players:
            resp = client.get("/players")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.list_runs or args.get_run or args.export_run:
            if args.list_runs:
                resp = client.get("/team-generator/runs")
                resp.raise_for_status()
                print(json.dumps(resp.json(), indent=2))
            if args.get_run:
                resp = client.get(f"/team-generator/runs/{args.get_run}")
                if resp.status_code == 404:
                    raise SystemExit(f"run {args.get_run} not found")
                resp.raise_for_status()
                print(json.dumps(resp.json(), indent=2))
            if args.export_run:
                resp = client.get(f"/team-generator/runs/{args.export_run}/export.csv")
                if resp.status_code == 404:
                    raise SystemExit(f"run {args.export_run} not found")
                resp.raise_for_status()
                if args.export_path:
                    args.export_path.write_text(resp.text)
                    print(f"CSV export saved to {args.export_path}")
                else:
                    print(resp.text)
            return

        if args.record_result:
            payload = {
                "teams": _parse_teams(args.record_result),
                "winning_team_index": args.winner,
                "is_draw": args.draw,
            }
            resp = client.post("/team-generator/record-result", json=payload)
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        player_ids = args.ids
        if not player_ids:
            resp = client.get("/players")
            resp.raise_for_status()
            player_ids = [player["id"] for player in resp.json()]

        request = {
            "format": args.format,
            "balance_method": args.method,
            "teams_count": args.teams,
            "player_ids": player_ids,
            "seed": args.seed,
        }
        resp = client.post("/team-generator", json=request)
        if resp.status_code == 400:
            raise SystemExit(f"Team generation rejected: {resp.json()['detail']}")
        resp.raise_for_status()
        payload = resp.json()
        for team in payload["teams"]:
            captain = team["captain"]["name"] if team.get("captain") else "-"
            names = ", ".join(player["name"] for player in team["players"])
            print(f"{team['name']} (skill {team['total_skill']}, captain {captain}): {names}")

        if args.save:
            resp = client.post("/team-generator/save", json={"request": request, "teams": payload["teams"]})
            resp.raise_for_status()
            print(f"Saved run {resp.json()['run_id']}")


if __name__ == "__main__":
    main()
