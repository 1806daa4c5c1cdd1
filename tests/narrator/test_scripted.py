"""Tests for the scripted mansion narrator."""

import pytest

from solo_trpg.models import new_session_state
from solo_trpg.narrator import ScriptedNarrator


@pytest.fixture
def narrator() -> ScriptedNarrator:
    return ScriptedNarrator()


def _state_after(player_turns: int, investigator):
    state = new_session_state("s-1")
    state.pc = investigator
    for i in range(player_turns):
        state.log.append("player", f"action {i}")
        state.log.append("gm", f"reply {i}")
    return state


async def test_initial_scenario(narrator) -> None:
    s = await narrator.initial_scenario("Mina", "")
    assert s.initial_inventory == ["Invitation", "Flashlight", "Notebook"]
    assert s.objective.startswith("Enter the mansion")
    assert "eerie old mansion" in s.outline


async def test_theme_reaches_outline(narrator) -> None:
    s = await narrator.initial_scenario("Mina", "a drowned chapel")
    assert "a drowned chapel" in s.outline


@pytest.mark.parametrize("turn, kind", [
    (1, "choices"),
    (2, "check"),
    (3, "patch"),
    (4, "check"),
    (5, "patch"),
    (6, "choices"),
    (7, "end"),
    (12, "end"),
])
async def test_beat_sequence(narrator, investigator, turn, kind) -> None:
    state = _state_after(turn, investigator)
    reply = await narrator.next_turn(state, "go on")
    assert reply.player_facing_text
    if kind == "choices":
        assert reply.choices and reply.check_request is None and reply.end_signal is None
    elif kind == "check":
        assert reply.check_request is not None
    elif kind == "patch":
        assert reply.state_patch is not None
    else:
        assert reply.end_signal.type == "success"


async def test_checks_use_expected_skills(narrator, investigator) -> None:
    second = await narrator.next_turn(_state_after(2, investigator), "x")
    fourth = await narrator.next_turn(_state_after(4, investigator), "x")
    assert (second.check_request.skill, second.check_request.difficulty) == ("Spot Hidden", "normal")
    assert (fourth.check_request.skill, fourth.check_request.difficulty) == ("Locksmith", "hard")


async def test_sanity_loss_is_relative_to_current(narrator, investigator) -> None:
    state = _state_after(5, investigator)
    state.pc.resources.current_san = 2
    reply = await narrator.next_turn(state, "x")
    assert reply.state_patch.resources.current_san == 0
    assert "Strange glowing stone" in reply.state_patch.inventory_add


async def test_scene_index_ignored(narrator, investigator) -> None:
    state = _state_after(1, investigator)
    state.session.scene_index = 6
    reply = await narrator.next_turn(state, "x")
    assert reply.end_signal is None
