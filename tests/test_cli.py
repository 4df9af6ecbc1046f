import csv
import json

from teamgen.cli import main
from teamgen.config_loader import MappingProfile


def _roster_csv() -> str:
    rows = ["Full Name,Role,Rating"]
    roles = ["GK", "GK", "CB", "LB", "RB", "CB", "CM", "CAM", "CDM", "ST", "LW", "Coach"]
    for idx, role in enumerate(roles, start=1):
        rows.append(f"Player {idx},{role},{(idx % 5) + 1}")
    return "\n".join(rows) + "\n"


def test_cli_writes_export_and_report(tmp_path, capsys):
    roster = tmp_path / "roster.csv"
    roster.write_text(_roster_csv(), encoding="utf-8")
    output = tmp_path / "teams.csv"
    report = tmp_path / "report.json"
    profile = tmp_path / "profile.json"

    code = main(
        [
            str(roster),
            "--players-column", "name=Full Name",
            "--players-column", "position=Role",
            "--players-column", "skill_rating=Rating",
            "--seed", "3",
            "--team-name", "Reds",
            "--team-name", "Blues",
            "--output", str(output),
            "--report", str(report),
            "--save-profile", str(profile),
        ]
    )

    assert code == 0
    rows = list(csv.DictReader(output.read_text(encoding="utf-8").splitlines()))
    assert len(rows) == 11
    assert {row["team"] for row in rows} == {"Reds", "Blues"}

    summary = json.loads(report.read_text(encoding="utf-8"))
    assert summary["total_rows"] == 12
    assert summary["loaded_players"] == 11
    assert len(summary["skipped_rows"]) == 1

    saved = MappingProfile.load(profile)
    assert saved.roster_mapping["position"] == "Role"
    assert (saved.format, saved.balance_method, saved.teams_count) == ("5-a-side", "mixed", 2)

    out = capsys.readouterr().out
    assert "Loaded 11/12 players" in out
    assert "Reds:" in out


def test_cli_uses_saved_profile(tmp_path, capsys):
    roster = tmp_path / "roster.csv"
    roster.write_text(_roster_csv(), encoding="utf-8")
    profile = tmp_path / "profile.json"
    MappingProfile(
        {"name": "Full Name", "position": "Role", "skill_rating": "Rating"},
        balance_method="skill",
        teams_count=3,
    ).save(profile)
    output = tmp_path / "teams.csv"

    code = main([str(roster), "--load-profile", str(profile), "--output", str(output)])

    assert code == 0
    assert "Team 3:" in capsys.readouterr().out
    rows = list(csv.DictReader(output.read_text(encoding="utf-8").splitlines()))
    assert {row["team"] for row in rows} == {"Team 1", "Team 2", "Team 3"}


def test_cli_reports_generation_failure(tmp_path, capsys):
    roster = tmp_path / "roster.csv"
    roster.write_text(_roster_csv(), encoding="utf-8")
    profile = tmp_path / "profile.json"
    MappingProfile({"name": "Full Name", "position": "Role"}).save(profile)

    code = main(
        [
            str(roster),
            "--load-profile", str(profile),
            "--format", "11-a-side",
            "--output", str(tmp_path / "teams.csv"),
        ]
    )
    assert code == 1
    assert "Team generation failed" in capsys.readouterr().out
    assert not (tmp_path / "teams.csv").exists()
