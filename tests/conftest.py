import pytest

from solo_trpg.characters import build_character
from solo_trpg.dice import Dice
from solo_trpg.models import Abilities, Profile


class FixedDice(Dice):
    """Dice whose percentile rolls come from a fixed list."""

    def __init__(self, rolls: list[int]) -> None:
        super().__init__()
        self._rolls = list(rolls)

    def roll_percentile(self) -> int:
        return self._rolls.pop(0)


class SpyNarrator:
    """Wraps a narrator and counts requests."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.scenario_calls = 0
        self.turn_calls: list[str] = []

    async def initial_scenario(self, character_name, theme):
        self.scenario_calls += 1
        return await self.inner.initial_scenario(character_name, theme)

    async def next_turn(self, state, player_input):
        self.turn_calls.append(player_input)
        return await self.inner.next_turn(state, player_input)


@pytest.fixture
def abilities() -> Abilities:
    return Abilities(STR=10, CON=12, POW=10, DEX=11, APP=9, SIZ=14, INT=13, EDU=15)


@pytest.fixture
def investigator(abilities):
    return build_character(
        Profile(name="Mina Harker", occupation="Journalist"),
        abilities,
        {"Spot Hidden": 40, "Locksmith": 50},
    )


@pytest.fixture
def fixed_dice():
    return FixedDice


@pytest.fixture
def spy_narrator():
    return SpyNarrator
