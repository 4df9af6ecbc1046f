"""Split a pool of club players into balanced teams."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import random
from collections import Counter
from itertools import combinations
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from teamgen.config.formats import (
    BALANCE_METHODS,
    CAPTAIN_WEIGHTS,
    HISTORY_WIN_GAP,
    IDEAL_POSITION_SHARE,
    MAX_REBALANCE_SWAPS,
    MAX_TEAMS,
    MIN_TEAMS,
    REBALANCE_THRESHOLD,
    FormatRules,
    get_format,
)
from teamgen.models import POSITIONS, Player


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

_SEED_ENV = "TEAMGEN_SEED"

_NEUTRAL_WIN_RATE = 50.0

PlayerResolver = Callable[[Sequence[int]], Sequence[Player]]


class TeamGenerationError(Exception):
    """Base class for failures that abort a team generation call."""


class InvalidConfigError(TeamGenerationError):
    """Raised when the request itself is malformed."""


class InsufficientPlayersError(TeamGenerationError):
    def __init__(self, available: int, minimum: int, message: str | None = None):
        super().__init__(message or f"At least {minimum} players are required, got {available}")
        self.available = available
        self.minimum = minimum


class NotFoundError(TeamGenerationError):
    def __init__(self, missing_ids: Iterable[int]):
        self.missing_ids = tuple(missing_ids)
        listed = ", ".join(str(pid) for pid in self.missing_ids)
        super().__init__(f"Players not found: {listed}")


@dataclass(frozen=True)
class TeamGenerationRequest:
    format: str
    player_ids: Tuple[int, ...]
    balance_method: str = "mixed"
    teams_count: int = 2
    consider_history: bool = True
    competition_mode: bool = True
    team_names: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class PlayerMetrics:
    win_rate: float
    form_rating: float
    skill_rating: float
    position_strength: float


@dataclass(frozen=True)
class GeneratedTeam:
    name: str
    players: Tuple[Player, ...]
    total_skill: int
    position_balance: float
    average_win_rate: float
    captain: Optional[Player] = None

    @property
    def player_ids(self) -> Tuple[int, ...]:
        return tuple(player.id for player in self.players)

    @property
    def size(self) -> int:
        return len(self.players)


@dataclass(frozen=True)
class _Entry:
    player: Player
    metrics: PlayerMetrics


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; ignoring", name, raw)
        return default


def compute_player_metrics(player: Player) -> PlayerMetrics:
    stats = player.stats
    recorded = stats.team_wins + stats.team_losses + stats.team_draws
    win_rate = stats.team_wins / recorded * 100.0 if recorded > 0 else _NEUTRAL_WIN_RATE
    form = stats.form_rating if stats.form_rating is not None else stats.skill_rating
    strength = stats.position_rating if stats.position_rating is not None else stats.skill_rating
    return PlayerMetrics(
        win_rate=float(win_rate),
        form_rating=float(form),
        skill_rating=float(stats.skill_rating),
        position_strength=float(strength),
    )


def snake_order(count: int, teams_count: int) -> List[int]:
    """Team index for each of ``count`` ranked picks: 0..N-1, N-1..0, 0..N-1, ..."""

    order: List[int] = []
    for idx in range(count):
        round_no, offset = divmod(idx, teams_count)
        order.append(offset if round_no % 2 == 0 else teams_count - 1 - offset)
    return order


def position_balance(players: Sequence[Player]) -> float:
    """Score in [0, 100] for how close the position mix is to the ideal template."""

    if not players:
        return 0.0
    counts = Counter(player.position for player in players)
    score = 100.0
    for position, ideal in IDEAL_POSITION_SHARE.items():
        actual = counts.get(position, 0) / len(players)
        score -= abs(ideal - actual) * 100.0
    return max(0.0, score)


def captain_score(player: Player, metrics: PlayerMetrics) -> float:
    return (
        player.stats.games_played * CAPTAIN_WEIGHTS["games_played"]
        + metrics.form_rating * CAPTAIN_WEIGHTS["form_rating"]
        + player.stats.skill_rating * CAPTAIN_WEIGHTS["skill_rating"]
    )


def minimum_players(request: TeamGenerationRequest, rules: FormatRules) -> int:
    return max(request.teams_count * 2, rules.minimum_players)


def validate_request(request: TeamGenerationRequest) -> FormatRules:
    """Check the request shape before any player is resolved."""

    if isinstance(request.teams_count, bool) or not isinstance(request.teams_count, int):
        raise InvalidConfigError(f"teams_count must be an integer, got {request.teams_count!r}")
    if not MIN_TEAMS <= request.teams_count <= MAX_TEAMS:
        raise InvalidConfigError(
            f"teams_count must be between {MIN_TEAMS} and {MAX_TEAMS}, got {request.teams_count}"
        )
    if request.balance_method not in BALANCE_METHODS:
        raise InvalidConfigError(f"Unsupported balance method {request.balance_method!r}")
    try:
        rules = get_format(request.format)
    except KeyError as exc:
        raise InvalidConfigError(f"Unsupported format {request.format!r}") from exc

    player_ids = tuple(request.player_ids)
    if not player_ids:
        raise InvalidConfigError("player_ids must not be empty")
    duplicates = sorted(pid for pid, count in Counter(player_ids).items() if count > 1)
    if duplicates:
        raise InvalidConfigError(f"Duplicate player ids: {', '.join(str(pid) for pid in duplicates)}")

    if request.team_names is not None and len(request.team_names) != request.teams_count:
        raise InvalidConfigError(
            f"Expected {request.teams_count} team names, got {len(request.team_names)}"
        )
    return rules


def _resolve_players(player_ids: Sequence[int], resolve_players: PlayerResolver) -> List[Player]:
    resolved = {player.id: player for player in resolve_players(list(player_ids))}
    missing = [pid for pid in player_ids if pid not in resolved]
    if missing:
        raise NotFoundError(missing)
    return [resolved[pid] for pid in player_ids]


def _metric(entry: _Entry, metric: str) -> float:
    return getattr(entry.metrics, metric)


def _group_by_position(entries: Sequence[_Entry]) -> Dict[str, List[_Entry]]:
    groups: Dict[str, List[_Entry]] = {position: [] for position in POSITIONS}
    for entry in entries:
        groups.setdefault(entry.player.position, []).append(entry)
    return groups


def _snake_into(teams: List[List[_Entry]], ranked: Sequence[_Entry], order: Sequence[int] | None = None) -> None:
    order = list(order) if order is not None else list(range(len(teams)))
    for entry, pick in zip(ranked, snake_order(len(ranked), len(teams))):
        teams[order[pick]].append(entry)


def _by_skill(entries: Sequence[_Entry]) -> List[_Entry]:
    return sorted(entries, key=lambda entry: entry.metrics.skill_rating, reverse=True)


def _distribute_by_skill(entries: Sequence[_Entry], teams_count: int, rng: random.Random) -> List[List[_Entry]]:
    teams: List[List[_Entry]] = [[] for _ in range(teams_count)]
    _snake_into(teams, _by_skill(entries))
    return teams


def _distribute_by_position(entries: Sequence[_Entry], teams_count: int, rng: random.Random) -> List[List[_Entry]]:
    teams: List[List[_Entry]] = [[] for _ in range(teams_count)]
    groups = _group_by_position(entries)

    keepers = list(groups["Goalkeeper"])
    if len(keepers) > teams_count:
        rng.shuffle(keepers)
    for team_idx, keeper in enumerate(keepers[:teams_count]):
        teams[team_idx].append(keeper)

    # Spare keepers join the min-load pass ahead of the outfield groups.
    for group in (keepers[teams_count:], groups["Defender"], groups["Midfielder"], groups["Forward"]):
        pool = list(group)
        rng.shuffle(pool)
        for entry in pool:
            target = min(range(teams_count), key=lambda idx: len(teams[idx]))
            teams[target].append(entry)
    return teams


def _distribute_mixed(entries: Sequence[_Entry], teams_count: int, rng: random.Random) -> List[List[_Entry]]:
    teams: List[List[_Entry]] = [[] for _ in range(teams_count)]
    groups = _group_by_position(entries)
    for position in POSITIONS:
        # Each group restarts the zig-zag from the currently lightest team.
        order = sorted(range(teams_count), key=lambda idx: (len(teams[idx]), idx))
        _snake_into(teams, _by_skill(groups[position]), order)
    return teams


_DISTRIBUTORS: Dict[str, Callable[[Sequence[_Entry], int, random.Random], List[List[_Entry]]]] = {
    "skill": _distribute_by_skill,
    "position": _distribute_by_position,
    "mixed": _distribute_mixed,
}


def _team_mean(team: Sequence[_Entry], metric: str) -> float:
    return sum(_metric(entry, metric) for entry in team) / len(team)


def _rebalance(teams: List[List[_Entry]], metric: str) -> int:
    """Swap same-position extremes between the strongest and weakest teams."""

    swaps = 0
    while swaps < MAX_REBALANCE_SWAPS:
        populated = [idx for idx, team in enumerate(teams) if team]
        if len(populated) < 2:
            break
        means = {idx: _team_mean(teams[idx], metric) for idx in populated}
        high = max(populated, key=lambda idx: means[idx])
        low = min(populated, key=lambda idx: means[idx])
        if means[high] - means[low] <= REBALANCE_THRESHOLD:
            break

        strong = max(teams[high], key=lambda entry: _metric(entry, metric))
        weak = min(teams[low], key=lambda entry: _metric(entry, metric))
        if strong.player.position != weak.player.position:
            break
        if _metric(strong, metric) <= _metric(weak, metric):
            break
        delta = _metric(strong, metric) - _metric(weak, metric)
        means_after = dict(means)
        means_after[high] -= delta / len(teams[high])
        means_after[low] += delta / len(teams[low])
        if max(means_after.values()) - min(means_after.values()) >= means[high] - means[low]:
            break

        strong_idx = teams[high].index(strong)
        weak_idx = teams[low].index(weak)
        teams[high][strong_idx] = weak
        teams[low][weak_idx] = strong
        swaps += 1
    else:
        logger.info("Rebalancing on %s stopped after %s swaps", metric, swaps)
    return swaps


def _rebalance_metrics(request: TeamGenerationRequest) -> List[str]:
    metrics = ["skill_rating"]
    if request.balance_method in {"position", "mixed"}:
        metrics.append("position_strength")
    if request.consider_history:
        metrics.append("win_rate")
    return metrics


def _pick_captain(team: Sequence[_Entry]) -> Optional[_Entry]:
    if not team:
        return None
    return max(team, key=lambda entry: captain_score(entry.player, entry.metrics))


def _apply_history_swaps(teams: List[List[_Entry]]) -> set[int]:
    """Single pass over team pairs swapping the top winners when their records diverge."""

    touched: set[int] = set()
    for first, second in combinations(range(len(teams)), 2):
        if not teams[first] or not teams[second]:
            continue
        top_first = max(teams[first], key=lambda entry: entry.player.stats.team_wins)
        top_second = max(teams[second], key=lambda entry: entry.player.stats.team_wins)
        gap = abs(top_first.player.stats.team_wins - top_second.player.stats.team_wins)
        if gap <= HISTORY_WIN_GAP or top_first.player.position != top_second.player.position:
            continue
        first_idx = teams[first].index(top_first)
        second_idx = teams[second].index(top_second)
        teams[first][first_idx] = top_second
        teams[second][second_idx] = top_first
        touched.update((first, second))
    return touched


def _finalize(name: str, team: Sequence[_Entry], captain: Optional[_Entry]) -> GeneratedTeam:
    players = tuple(entry.player for entry in team)
    if team:
        average_win_rate = sum(entry.metrics.win_rate for entry in team) / len(team)
    else:
        average_win_rate = _NEUTRAL_WIN_RATE
    return GeneratedTeam(
        name=name,
        players=players,
        total_skill=sum(player.stats.skill_rating for player in players),
        position_balance=position_balance(players),
        average_win_rate=average_win_rate,
        captain=captain.player if captain is not None else None,
    )


def generate_teams(
    request: TeamGenerationRequest,
    resolve_players: PlayerResolver,
    *,
    seed: int | None = None,
) -> List[GeneratedTeam]:
    """Partition the requested players into ``teams_count`` balanced teams."""

    rules = validate_request(request)
    player_ids = tuple(request.player_ids)
    players = _resolve_players(player_ids, resolve_players)

    required = minimum_players(request, rules)
    if len(players) < required:
        raise InsufficientPlayersError(
            len(players),
            required,
            f"{rules.name} with {request.teams_count} teams needs at least {required} players, got {len(players)}",
        )

    rng = random.Random(seed if seed is not None else _env_int(_SEED_ENV, None))
    entries = [_Entry(player, compute_player_metrics(player)) for player in players]
    teams_count = request.teams_count

    drafts = _DISTRIBUTORS[request.balance_method](entries, teams_count, rng)
    swap_counts = {metric: _rebalance(drafts, metric) for metric in _rebalance_metrics(request)}

    captains: List[Optional[_Entry]] = [None] * teams_count
    if request.competition_mode:
        captains = [_pick_captain(team) for team in drafts]
        if request.consider_history:
            for team_idx in sorted(_apply_history_swaps(drafts)):
                captains[team_idx] = _pick_captain(drafts[team_idx])

    names = request.team_names or tuple(f"Team {idx + 1}" for idx in range(teams_count))
    teams = [_finalize(name, draft, captain) for name, draft, captain in zip(names, drafts, captains)]

    logger.info(
        "Generated %s teams from %s players (format=%s, method=%s, sizes=%s, swaps=%s)",
        teams_count,
        len(players),
        rules.name,
        request.balance_method,
        [team.size for team in teams],
        swap_counts,
    )
    return teams
