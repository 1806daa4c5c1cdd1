"""Handlebars prompt rendering for the LLM narrator.

Two templates are used:
  SCENARIO_PROMPT  — builds the opening scenario for a new session
  TURN_PROMPT      — narrates the outcome of one player input

Both instruct the model to answer with a single JSON object matching
InitialScenario / NarratorTurn. Templates can be overridden through the
config ("prompts" key) and are cached by source string.
"""

from collections.abc import Callable
from typing import Any

import pybars

from solo_trpg.models import SessionState

HISTORY_WINDOW = 5

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


SCENARIO_PROMPT = """\
You are the game master of a solo horror-investigation tabletop RPG.
Build a short single-player scenario and answer with one JSON object only,
no markdown fences, following this schema:
{
  "outline": "full scenario outline (hidden from the player)",
  "guidance": "key truths, obstacles and ending conditions (hidden from the player)",
  "introductionText": "opening scene shown to the player",
  "objective": "the player's first goal, one short sentence",
  "initialFlags": ["flags that are true at the start"],
  "initialInventory": ["items the investigator starts with"]
}

The investigator is called {{{name}}}.
Theme: {{{theme}}}
Write a slightly unsettling opening with room to explore.\
"""

TURN_PROMPT = """\
You are the game master of a solo tabletop RPG. Describe what happens
after the player's action and move the story forward.

Rules:
- Never repeat the previous description. Every action must reveal new
  information, change the situation, or lead to the next development.
- The application tracks state. Whenever the story progresses, issue a
  statePatch (flags, resource changes, objective updates).
- Include a checkRequest only the first time an action needs a skill
  check, and stop the description right before the outcome.
- If the latest action starts with "[check result]", the dice have
  already been rolled. Never issue a checkRequest again; narrate the
  outcome according to the result and advance the state.
- Offer 2-3 choices for the next action.
- When the objective is reached or the investigator suffers a fatal
  failure, include an endSignal.

{{#if guidance}}
## Hidden guidance
{{{guidance}}}

{{/if}}
## Current state
- Objective: {{{objective}}}
- Inventory: {{{inventory}}}
- Flags: {{{flags}}}

## Recent log
{{#each history}}
[{{type}}] {{{text}}}
{{/each}}

## Latest player action
{{{input}}}

Answer with one JSON object only, no markdown fences. Omit fields you do
not need:
{
  "playerFacingText": "what happens now",
  "choices": ["bold option", "careful option", "different angle"],
  "checkRequest": {"skill": "skill name", "difficulty": "normal|hard|extreme",
                   "purpose": "what the check decides", "failureHint": "risk on failure"},
  "statePatch": {"resources": {"currentSAN": 0, "currentHP": 0, "currentMP": 0},
                 "flagsAdd": [], "flagsRemove": [], "inventoryAdd": [],
                 "inventoryRemove": [], "objective": "new objective"},
  "endSignal": {"type": "success|fail|time_up", "reason": "why the session ends"}
}\
"""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_scenario_context(character_name: str, theme: str) -> dict[str, Any]:
    return {
        "name": character_name or "the investigator",
        "theme": theme or "a mystery in an eerie old mansion",
    }


def build_turn_context(state: SessionState, player_input: str) -> dict[str, Any]:
    """Assemble template variables for one turn.

    Only the objective, inventory, flags, hidden guidance and the last
    HISTORY_WINDOW log messages are exposed to the narrator.
    """
    return {
        "guidance": state.session.guidance,
        "objective": state.world.objective or "(none)",
        "inventory": ", ".join(state.pc.inventory) or "(nothing)",
        "flags": ", ".join(state.world.flags) or "(none)",
        "history": [
            {"type": m.type, "text": m.text}
            for m in state.log.recent(HISTORY_WINDOW)
        ],
        "input": player_input,
    }
