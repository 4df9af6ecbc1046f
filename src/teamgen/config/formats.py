"""Match formats and the fixed constants used by the team balancer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping


@dataclass(frozen=True)
class FormatRules:
    name: str
    players_per_team: int
    minimum_players: int


_FORMAT_RULES: Dict[str, FormatRules] = {
    "5-a-side": FormatRules(name="5-a-side", players_per_team=5, minimum_players=10),
    "7-a-side": FormatRules(name="7-a-side", players_per_team=7, minimum_players=14),
    "11-a-side": FormatRules(name="11-a-side", players_per_team=11, minimum_players=22),
}

FORMATS: tuple[str, ...] = tuple(_FORMAT_RULES)

BALANCE_METHODS: tuple[str, ...] = ("skill", "position", "mixed")

LEADERBOARD_CATEGORIES: tuple[str, ...] = ("goals", "assists", "clean_sheets", "tackles", "saves")

MIN_TEAMS = 2
MAX_TEAMS = 4

# Gap between the strongest and weakest team mean, on the metric's own scale.
REBALANCE_THRESHOLD = 20.0
MAX_REBALANCE_SWAPS = 100

HISTORY_WIN_GAP = 3

IDEAL_POSITION_SHARE: Mapping[str, float] = {
    "Goalkeeper": 0.10,
    "Defender": 0.30,
    "Midfielder": 0.40,
    "Forward": 0.20,
}

CAPTAIN_WEIGHTS: Mapping[str, float] = {
    "games_played": 0.4,
    "form_rating": 0.3,
    "skill_rating": 0.3,
}


def iter_formats() -> Iterable[FormatRules]:
    """Return an iterator of all configured formats."""

    return _FORMAT_RULES.values()


def get_format(name: str) -> FormatRules:
    """Fetch rules for a match format, raising KeyError if missing."""

    key = name.strip().lower()
    if key not in _FORMAT_RULES:
        raise KeyError(f"No format rules configured for {name!r}")
    return _FORMAT_RULES[key]
