import pytest
from pydantic import ValidationError

from teamgen.models import Player, PlayerStats


def test_player_is_frozen():
    player = Player(id=1, name="Test Player", position="Midfielder")

    assert player.stats.skill_rating == 3
    assert player.badges == []

    with pytest.raises((TypeError, ValidationError)):
        player.name = "Renamed"  # type: ignore[misc]


@pytest.mark.parametrize("skill", [0, 6])
def test_skill_rating_bounds(skill):
    with pytest.raises(ValidationError):
        PlayerStats(skill_rating=skill)


def test_counters_cannot_be_negative():
    with pytest.raises(ValidationError):
        PlayerStats(goals=-1)


def test_unknown_position_rejected():
    with pytest.raises(ValidationError):
        Player(id=2, name="Coach", position="Manager")
