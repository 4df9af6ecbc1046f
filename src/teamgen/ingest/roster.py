"""Helpers to load roster CSVs and emit canonical player records."""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from teamgen.models import Player


logger = logging.getLogger(__name__)

POSITION_ALIAS_GROUPS: dict[str, list[str]] = {
    "Goalkeeper": ["GOALKEEPER", "GK", "G", "KEEPER", "GOALIE"],
    "Defender": ["DEFENDER", "DEF", "D", "CB", "LB", "RB", "FB", "WB", "LWB", "RWB", "BACK"],
    "Midfielder": ["MIDFIELDER", "MIDFIELD", "MID", "M", "CM", "CDM", "CAM", "DM", "AM", "LM", "RM"],
    "Forward": ["FORWARD", "FWD", "F", "FW", "ST", "CF", "LW", "RW", "STRIKER", "WINGER", "ATT"],
}


def _position_token(value: str) -> str:
    return re.sub(r"[^A-Z]", "", value.upper())


def _build_alias_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for canonical, variants in POSITION_ALIAS_GROUPS.items():
        for variant in variants:
            key = _position_token(variant)
            if key:
                lookup.setdefault(key, canonical)
    return lookup


POSITION_ALIAS_LOOKUP = _build_alias_lookup()

STAT_FIELDS: tuple[str, ...] = (
    "skill_rating",
    "goals",
    "assists",
    "clean_sheets",
    "tackles",
    "saves",
    "games_played",
    "team_wins",
    "team_losses",
    "team_draws",
    "form_rating",
    "position_rating",
)

_RATING_FIELDS = frozenset({"form_rating", "position_rating"})

DEFAULT_ROSTER_MAPPING = {
    "player_id": "id",
    "name": "name",
    "position": "position",
    "jersey_number": "jersey_number",
    **{stat: stat for stat in STAT_FIELDS},
}


class RosterRow(BaseModel):
    raw_id: Optional[str] = None
    raw_name: str
    raw_position: Optional[str] = None
    raw_jersey: Optional[str] = None
    raw_stats: dict[str, str] = {}

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "RosterRow":
        def extract(source: Optional[str | Sequence[str]], *, default: Optional[str] = None) -> Optional[str]:
            if source is None:
                return default
            if isinstance(source, str):
                value = row.get(source)
                return value.strip() if value is not None else default
            parts = [row.get(col, "").strip() for col in source if row.get(col)]
            return " ".join(parts) if parts else default

        def parse_source(key: str, default_key: Optional[str] = None) -> Optional[str | Sequence[str]]:
            source = mapping.get(key)
            if source is None and default_key:
                source = default_key
            if source is None:
                return None
            if isinstance(source, str) and "|" in source:
                return tuple(part.strip() for part in source.split("|"))
            return source

        stats: dict[str, str] = {}
        for stat in STAT_FIELDS:
            value = extract(parse_source(stat))
            if value:
                stats[stat] = value

        return cls(
            raw_id=extract(parse_source("player_id")),
            raw_name=extract(parse_source("name", "name"), default="") or "",
            raw_position=extract(parse_source("position", "position")),
            raw_jersey=extract(parse_source("jersey_number")),
            raw_stats=stats,
        )


@dataclass
class LoadReport:
    total_rows: int = 0
    loaded_players: int = 0
    skipped_rows: List[str] = field(default_factory=list)
    duplicate_ids: List[int] = field(default_factory=list)


def canonical_position(raw_position: Optional[str]) -> Optional[str]:
    if not raw_position:
        return None
    # Multi-position cells such as "CB/DM" use the first listed role.
    first = re.split(r"[/,;]", raw_position)[0]
    return POSITION_ALIAS_LOOKUP.get(_position_token(first))


def _parse_int(raw: Optional[str], *, label: str) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return _whole_number(raw.strip(), label=label)


def _whole_number(text: str, *, label: str) -> int:
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{label} '{text}' is not numeric") from None
    if not math.isfinite(value) or not value.is_integer():
        raise ValueError(f"{label} '{text}' is not a whole number")
    return int(value)


def _parse_stats(raw_stats: Mapping[str, str]) -> dict[str, float | int]:
    stats: dict[str, float | int] = {}
    for key, raw in raw_stats.items():
        text = raw.strip()
        if not text:
            continue
        if key not in _RATING_FIELDS:
            stats[key] = _whole_number(text, label=key)
            continue
        try:
            value = float(text)
        except ValueError:
            raise ValueError(f"{key} '{text}' is not numeric") from None
        if not math.isfinite(value):
            raise ValueError(f"{key} '{text}' is not a finite number")
        stats[key] = value
    return stats


def load_roster_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[RosterRow]:
    mapping = merge_mapping(mapping)
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [RosterRow.from_mapping(row, mapping) for row in reader]
    return rows


def rows_to_players(rows: Sequence[RosterRow]) -> Tuple[List[Player], LoadReport]:
    """Convert mapped rows into validated players, reporting anything skipped."""

    report = LoadReport(total_rows=len(rows))
    players: List[Player] = []
    seen: set[int] = set()

    explicit_ids: set[int] = set()
    for row in rows:
        try:
            parsed = _parse_int(row.raw_id, label="id")
        except ValueError:
            continue
        if parsed is not None:
            explicit_ids.add(parsed)
    next_id = max(explicit_ids, default=0) + 1

    for line_no, row in enumerate(rows, start=2):
        label = row.raw_name or f"row {line_no}"
        position = canonical_position(row.raw_position)
        if position is None:
            logger.warning("Skipping %s: unknown position %r", label, row.raw_position)
            report.skipped_rows.append(f"{label}: unknown position {row.raw_position!r}")
            continue
        try:
            player_id = _parse_int(row.raw_id, label="id")
            jersey = _parse_int(row.raw_jersey, label="jersey_number")
            stats = _parse_stats(row.raw_stats)
        except ValueError as exc:
            logger.warning("Skipping %s: %s", label, exc)
            report.skipped_rows.append(f"{label}: {exc}")
            continue

        if player_id is None:
            player_id = next_id
            next_id += 1
        if player_id in seen:
            logger.warning("Skipping %s: duplicate id %s", label, player_id)
            report.duplicate_ids.append(player_id)
            continue

        try:
            player = Player(
                id=player_id,
                name=row.raw_name,
                position=position,
                jersey_number=jersey,
                stats=stats,
            )
        except ValidationError as exc:
            logger.warning("Skipping %s: %s", label, exc.errors()[0].get("msg", exc))
            report.skipped_rows.append(f"{label}: invalid player data")
            continue
        seen.add(player_id)
        players.append(player)

    report.loaded_players = len(players)
    if report.skipped_rows or report.duplicate_ids:
        logger.info(
            "Loaded %s/%s roster rows (%s skipped, %s duplicate ids)",
            report.loaded_players,
            report.total_rows,
            len(report.skipped_rows),
            len(report.duplicate_ids),
        )
    return players, report


def load_players_from_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Tuple[List[Player], LoadReport]:
    return rows_to_players(load_roster_csv(path, mapping=mapping))


def merge_mapping(overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Overlay user column mappings on the default roster layout."""

    merged = dict(DEFAULT_ROSTER_MAPPING)
    if overrides:
        merged.update(overrides)
    return merged
