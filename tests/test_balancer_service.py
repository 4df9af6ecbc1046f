import pytest

from teamgen.balancer import (
    InsufficientPlayersError,
    InvalidConfigError,
    NotFoundError,
    TeamGenerationRequest,
    compute_player_metrics,
    generate_teams,
)
from teamgen.balancer.service import (
    _Entry,
    _rebalance,
    captain_score,
    position_balance,
    snake_order,
)
from teamgen.models import Player, PlayerStats


def _player(pid: int, position: str, skill: int = 3, **stats) -> Player:
    return Player(
        id=pid,
        name=f"Player {pid}",
        position=position,
        stats=PlayerStats(skill_rating=skill, **stats),
    )


def _resolver(players: list[Player]):
    by_id = {player.id: player for player in players}

    def resolve(ids):
        return [by_id[pid] for pid in ids if pid in by_id]

    return resolve


def _request(players: list[Player], **overrides) -> TeamGenerationRequest:
    params = {
        "format": "5-a-side",
        "player_ids": tuple(player.id for player in players),
    }
    params.update(overrides)
    return TeamGenerationRequest(**params)


def _club_pool() -> list[Player]:
    positions = ["Goalkeeper", "Goalkeeper"] + ["Defender"] * 4 + ["Midfielder"] * 5 + ["Forward"] * 3
    skills = [4, 2, 5, 3, 3, 1, 5, 4, 2, 3, 1, 5, 2, 4]
    return [
        _player(idx + 1, position, skill, games_played=idx, team_wins=idx % 3, team_losses=1)
        for idx, (position, skill) in enumerate(zip(positions, skills))
    ]


def test_snake_order_reverses_at_each_boundary():
    assert snake_order(6, 2) == [0, 1, 1, 0, 0, 1]
    assert snake_order(7, 3) == [0, 1, 2, 2, 1, 0, 0]
    assert snake_order(0, 4) == []


def test_compute_player_metrics_defaults():
    fresh = _player(1, "Forward", 4)
    metrics = compute_player_metrics(fresh)
    assert metrics.win_rate == pytest.approx(50.0)
    assert metrics.form_rating == pytest.approx(4.0)
    assert metrics.position_strength == pytest.approx(4.0)
    assert metrics.skill_rating == pytest.approx(4.0)

    veteran = _player(2, "Defender", 2, team_wins=3, team_losses=1, form_rating=4.5, position_rating=3.5)
    metrics = compute_player_metrics(veteran)
    assert metrics.win_rate == pytest.approx(75.0)
    assert metrics.form_rating == pytest.approx(4.5)
    assert metrics.position_strength == pytest.approx(3.5)


@pytest.mark.parametrize("method", ["skill", "position", "mixed"])
@pytest.mark.parametrize("teams_count", [2, 3, 4])
def test_every_player_lands_on_exactly_one_team(method, teams_count):
    pool = _club_pool()
    teams = generate_teams(
        _request(pool, balance_method=method, teams_count=teams_count),
        _resolver(pool),
        seed=11,
    )

    assert len(teams) == teams_count
    assigned = [pid for team in teams for pid in team.player_ids]
    assert sorted(assigned) == [player.id for player in pool]
    assert [team.name for team in teams] == [f"Team {idx + 1}" for idx in range(teams_count)]


def test_skewed_pool_is_split_evenly():
    pool = [_player(idx + 1, "Midfielder", 5 if idx < 5 else 1) for idx in range(10)]
    teams = generate_teams(_request(pool, balance_method="skill"), _resolver(pool), seed=1)

    totals = [team.total_skill for team in teams]
    assert [team.size for team in teams] == [5, 5]
    assert abs(totals[0] - totals[1]) <= 4
    for team in teams:
        assert any(player.stats.skill_rating == 1 for player in team.players)


def test_mixed_method_balances_positions_and_skill():
    forwards = [_player(idx + 1, "Forward", skill) for idx, skill in enumerate([5, 4, 3, 2, 1])]
    defenders = [_player(idx + 6, "Defender", skill) for idx, skill in enumerate([5, 4, 3, 2, 1])]
    pool = forwards + defenders
    teams = generate_teams(_request(pool, balance_method="mixed"), _resolver(pool), seed=3)

    for team in teams:
        positions = [player.position for player in team.players]
        assert 2 <= positions.count("Forward") <= 3
        assert 2 <= positions.count("Defender") <= 3
    assert abs(teams[0].total_skill - 15) <= 4
    assert abs(teams[1].total_skill - 15) <= 4


def test_position_method_spreads_goalkeepers():
    keepers = [_player(idx + 1, "Goalkeeper") for idx in range(4)]
    outfield = [_player(idx + 5, position) for idx, position in enumerate(["Defender", "Midfielder"] * 4)]
    pool = keepers + outfield
    teams = generate_teams(_request(pool, balance_method="position"), _resolver(pool), seed=5)

    assert [team.size for team in teams] == [6, 6]
    for team in teams:
        assert sum(1 for player in team.players if player.position == "Goalkeeper") == 2


def test_position_balance_is_bounded():
    ideal = (
        [_player(1, "Goalkeeper")]
        + [_player(idx, "Defender") for idx in range(2, 5)]
        + [_player(idx, "Midfielder") for idx in range(5, 9)]
        + [_player(idx, "Forward") for idx in range(9, 11)]
    )
    assert position_balance(ideal) == pytest.approx(100.0)
    assert position_balance([_player(idx, "Goalkeeper") for idx in range(1, 6)]) == 0.0
    assert position_balance([]) == 0.0

    pool = _club_pool()
    for team in generate_teams(_request(pool, teams_count=3), _resolver(pool), seed=2):
        assert 0.0 <= team.position_balance <= 100.0


def test_captains_belong_to_their_team():
    pool = _club_pool()
    teams = generate_teams(_request(pool, teams_count=3), _resolver(pool), seed=9)
    for team in teams:
        assert team.captain is not None
        assert team.captain.id in team.player_ids
        best = max(captain_score(player, compute_player_metrics(player)) for player in team.players)
        assert captain_score(team.captain, compute_player_metrics(team.captain)) == pytest.approx(best)


def test_competition_mode_off_skips_captains():
    pool = _club_pool()
    teams = generate_teams(_request(pool, competition_mode=False), _resolver(pool), seed=9)
    assert all(team.captain is None for team in teams)


def test_fixed_seed_is_deterministic():
    pool = _club_pool()
    for method in ("skill", "position", "mixed"):
        first = generate_teams(_request(pool, balance_method=method), _resolver(pool), seed=42)
        second = generate_teams(_request(pool, balance_method=method), _resolver(pool), seed=42)
        assert [team.player_ids for team in first] == [team.player_ids for team in second]


def test_seed_env_var_is_used(monkeypatch):
    monkeypatch.setenv("TEAMGEN_SEED", "17")
    pool = _club_pool()
    first = generate_teams(_request(pool, balance_method="position"), _resolver(pool))
    second = generate_teams(_request(pool, balance_method="position"), _resolver(pool))
    assert [team.player_ids for team in first] == [team.player_ids for team in second]


def test_history_swap_moves_top_winner_and_reassigns_captain():
    pool = [_player(1, "Midfielder", team_wins=10, games_played=10)]
    pool += [_player(idx, "Midfielder") for idx in range(2, 11)]
    teams = generate_teams(_request(pool, balance_method="skill"), _resolver(pool), seed=0)

    assert 1 in teams[1].player_ids
    assert 2 in teams[0].player_ids
    assert teams[1].captain is not None and teams[1].captain.id == 1
    assert teams[0].captain is not None and teams[0].captain.id in teams[0].player_ids


def test_history_swap_requires_consider_history():
    pool = [_player(1, "Midfielder", team_wins=10, games_played=10)]
    pool += [_player(idx, "Midfielder") for idx in range(2, 11)]
    teams = generate_teams(
        _request(pool, balance_method="skill", consider_history=False),
        _resolver(pool),
        seed=0,
    )
    assert 1 in teams[0].player_ids
    assert teams[0].captain.id == 1


def test_rebalance_swaps_until_gap_closes():
    def entry(pid: int, wins: int, losses: int) -> _Entry:
        player = _player(pid, "Midfielder", team_wins=wins, team_losses=losses)
        return _Entry(player, compute_player_metrics(player))

    winners = [entry(idx, 5, 0) for idx in range(1, 6)]
    losers = [entry(idx, 0, 5) for idx in range(6, 11)]
    teams = [winners, losers]

    swaps = _rebalance(teams, "win_rate")

    assert swaps == 2
    means = [sum(e.metrics.win_rate for e in team) / len(team) for team in teams]
    assert abs(means[0] - means[1]) <= 20


def test_rebalance_stops_without_same_position_swap():
    keeper = _player(1, "Goalkeeper", team_wins=5)
    forward = _player(2, "Forward", team_losses=5)
    teams = [[_Entry(keeper, compute_player_metrics(keeper))], [_Entry(forward, compute_player_metrics(forward))]]

    assert _rebalance(teams, "win_rate") == 0
    assert teams[0][0].player.id == 1


def test_custom_team_names():
    pool = _club_pool()
    teams = generate_teams(
        _request(pool, teams_count=2, team_names=("Reds", "Blues")),
        _resolver(pool),
        seed=1,
    )
    assert [team.name for team in teams] == ["Reds", "Blues"]


def test_eleven_a_side_needs_two_full_teams():
    pool = [_player(idx + 1, "Defender") for idx in range(8)]
    with pytest.raises(InsufficientPlayersError) as excinfo:
        generate_teams(_request(pool, format="11-a-side"), _resolver(pool))
    assert excinfo.value.minimum == 22
    assert excinfo.value.available == 8


def test_team_count_raises_minimum():
    pool = [_player(idx + 1, "Defender") for idx in range(9)]
    with pytest.raises(InsufficientPlayersError) as excinfo:
        generate_teams(_request(pool, teams_count=4), _resolver(pool))
    assert excinfo.value.minimum == 10


@pytest.mark.parametrize(
    "overrides",
    [
        {"teams_count": 1},
        {"teams_count": 5},
        {"teams_count": True},
        {"balance_method": "random"},
        {"format": "3-a-side"},
        {"player_ids": ()},
        {"player_ids": (1, 2, 2)},
        {"team_names": ("Only one",)},
    ],
)
def test_invalid_config_fails_before_resolution(overrides):
    def resolver(ids):
        raise AssertionError("resolver should not be called")

    pool = _club_pool()
    with pytest.raises(InvalidConfigError):
        generate_teams(_request(pool, **overrides), resolver)


def test_unknown_ids_raise_not_found():
    pool = _club_pool()
    request = _request(pool, player_ids=tuple(player.id for player in pool) + (99,))
    with pytest.raises(NotFoundError) as excinfo:
        generate_teams(request, _resolver(pool))
    assert excinfo.value.missing_ids == (99,)


def test_rebalance_skips_swap_that_overshoots():
    def entry(pid: int, wins: int, losses: int) -> _Entry:
        player = _player(pid, "Midfielder", team_wins=wins, team_losses=losses)
        return _Entry(player, compute_player_metrics(player))

    teams = [[entry(1, 5, 0), entry(2, 1, 4)], [entry(3, 0, 5), entry(4, 3, 2)]]

    assert _rebalance(teams, "win_rate") == 0
    assert [[e.player.id for e in team] for team in teams] == [[1, 2], [3, 4]]


def test_mixed_method_fills_every_team_with_thin_groups():
    positions = ["Goalkeeper"] * 3 + ["Defender"] * 3 + ["Midfielder"] * 2 + ["Forward"] * 2
    pool = [_player(idx + 1, position, (idx % 5) + 1) for idx, position in enumerate(positions)]
    teams = generate_teams(_request(pool, teams_count=4, balance_method="mixed"), _resolver(pool), seed=0)

    assert sorted(team.size for team in teams) == [2, 2, 3, 3]
    assert all(team.captain is not None for team in teams)
    assert sorted(pid for team in teams for pid in team.player_ids) == list(range(1, 11))


def _history_pool(top_wins: int, top_position: str = "Midfielder") -> list[Player]:
    pool = [_player(1, top_position, team_wins=top_wins, games_played=10)]
    pool += [_player(idx, "Midfielder") for idx in range(2, 11)]
    return pool


def test_history_gap_at_threshold_does_not_swap():
    pool = _history_pool(top_wins=3)
    teams = generate_teams(_request(pool, balance_method="skill"), _resolver(pool), seed=0)
    assert 1 in teams[0].player_ids
    assert 2 in teams[1].player_ids


def test_history_swap_requires_same_position():
    pool = _history_pool(top_wins=10, top_position="Goalkeeper")
    teams = generate_teams(_request(pool, balance_method="skill"), _resolver(pool), seed=0)
    assert 1 in teams[0].player_ids
    assert 2 in teams[1].player_ids


def test_history_swap_requires_competition_mode():
    pool = _history_pool(top_wins=10)
    teams = generate_teams(
        _request(pool, balance_method="skill", competition_mode=False, consider_history=True),
        _resolver(pool),
        seed=0,
    )
    assert 1 in teams[0].player_ids
    assert 2 in teams[1].player_ids
    assert all(team.captain is None for team in teams)
