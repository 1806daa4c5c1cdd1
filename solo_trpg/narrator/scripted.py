"""Deterministic narrator — a fixed seven-beat mansion scenario.

Exercises every kind of narrator output without a model:

  turn 1   choices
  turn 2   check request (Spot Hidden, normal)
  turn 3   state patch (flag + objective) and choices
  turn 4   check request (Locksmith, hard)
  turn 5   state patch (SAN -3, item, flags, objective)
  turn 6   choices
  turn 7+  end signal (success) with a final flag

The turn number is the count of player messages in the log, the current
input included. Session.scene_index is deliberately not used.
"""

from __future__ import annotations

from solo_trpg.models import (
    CheckRequest,
    EndSignal,
    InitialScenario,
    NarratorTurn,
    ResourcePatch,
    SessionState,
    StatePatch,
)

DEFAULT_THEME = "a mystery in an eerie old mansion"


class ScriptedNarrator:
    async def initial_scenario(self, character_name: str, theme: str) -> InitialScenario:
        theme_text = theme or DEFAULT_THEME
        return InitialScenario(
            outline=f"[SCRIPTED OUTLINE] A scenario built on the theme \"{theme_text}\". Five scenes.",
            guidance=(
                "Truth: the master of the house hid a secret. Obstacles: a sealed room and a "
                "strange servant. Key: an old diary. Ending: reach the truth or run out of time."
            ),
            introduction_text=(
                "You stand before an old mansion.\n\n"
                "On a foggy evening an invitation led you here. The heavy door is ajar, "
                "and faint candlelight spills from inside.\n\n"
                "Somewhere in the house, a piano is playing..."
            ),
            objective="Enter the mansion and find whoever sent the invitation",
            initial_flags=[],
            initial_inventory=["Invitation", "Flashlight", "Notebook"],
        )

    async def next_turn(self, state: SessionState, player_input: str) -> NarratorTurn:
        turn = state.log.count("player")

        if turn <= 1:
            return NarratorTurn(
                player_facing_text=(
                    "You step into the entrance hall. Only half the candles in the chandelier "
                    "are lit.\n\nA grand staircase rises ahead, a study door stands to the left, "
                    "and a corridor to the right leads to the dining room."
                ),
                choices=["Climb the stairs", "Open the study door", "Head to the dining room"],
            )

        if turn == 2:
            return NarratorTurn(
                player_facing_text=(
                    "The study smells of dust.\n\nAn old diary lies on the desk, its ink faded "
                    "and hard to read. A careful look might turn up something important."
                ),
                check_request=CheckRequest(
                    skill="Spot Hidden",
                    difficulty="normal",
                    purpose="Find the important passage in the diary",
                    failure_hint="You may miss the clue and lose time",
                ),
            )

        if turn == 3:
            return NarratorTurn(
                player_facing_text=(
                    "The diary reveals that the master of the house \"hid something precious "
                    "in the cellar\".\n\nAt the same moment, something stirs at the far end of "
                    "the corridor. You tense up: there is a presence behind you."
                ),
                state_patch=StatePatch(
                    flags_add=["Knows about the cellar"],
                    objective="Find the cellar and see what is hidden there",
                ),
                choices=["Check on the noise", "Look for the way down to the cellar"],
            )

        if turn == 4:
            return NarratorTurn(
                player_facing_text=(
                    "You find the stairs to the cellar, but the door is shut with an old lock."
                    "\n\nThe mechanism looks simple. With the right tools it might open."
                ),
                check_request=CheckRequest(
                    skill="Locksmith",
                    difficulty="hard",
                    purpose="Open the cellar door",
                    failure_hint="You might break the lock",
                ),
            )

        if turn == 5:
            return NarratorTurn(
                player_facing_text=(
                    "In the cellar sits a single old box.\n\nThe moment you open it, an "
                    "unnatural light pours out and your mind reels. When you come to, a "
                    "strange stone is clutched in your hand.\n\nThis must be what the sender "
                    "of the invitation was hiding."
                ),
                state_patch=StatePatch(
                    resources=ResourcePatch(current_san=max(0, state.pc.resources.current_san - 3)),
                    inventory_add=["Strange glowing stone"],
                    flags_add=["Opened the box", "Has the glowing stone"],
                    objective="Learn what the glowing stone is and escape the mansion",
                ),
            )

        if turn == 6:
            return NarratorTurn(
                player_facing_text=(
                    "When you climb back up, the mansion has changed.\n\nThe lights are out and "
                    "a cold draught blows from somewhere. The front door is shut.\n\nFrom "
                    "upstairs, a faint voice: \"...this way...\""
                ),
                choices=[
                    "Follow the voice upstairs",
                    "Try to force the front door",
                    "Hold up the glowing stone",
                ],
            )

        return NarratorTurn(
            player_facing_text=(
                "As you raise the glowing stone, light floods the whole mansion.\n\nThe "
                "shadowy presence soaked into the walls burns away. When the light fades the "
                "house is quiet again, and the front door swings open onto the morning sun.\n\n"
                "You granted the wish of the spirit trapped here, the one who sent the "
                "invitation. It departs in peace."
            ),
            end_signal=EndSignal(
                type="success",
                reason="Solved the mystery of the mansion and freed the trapped spirit",
            ),
            state_patch=StatePatch(flags_add=["Freed the spirit"]),
        )
