"""LLM-backed narrator.

Renders a Handlebars prompt, sends it to an LLM callable, and validates
the completion into InitialScenario / NarratorTurn. Malformed output is
retried up to `attempts` times. A turn then falls back to FALLBACK_TURN
so the session never hard-stops on a bad generation; the opening
scenario has no sensible fallback and raises instead. LLMError from the
transport is not retried here (HttpLLM already backs off) and
propagates to the caller.
"""

from __future__ import annotations

from solo_trpg.llm import LLM
from solo_trpg.models import InitialScenario, NarratorTurn, SessionState
from solo_trpg.prompts import (
    SCENARIO_PROMPT,
    TURN_PROMPT,
    build_scenario_context,
    build_turn_context,
    render_prompt,
)

from .base import FALLBACK_TURN, MAX_ATTEMPTS, retry_malformed
from .parsing import parse_model


class LLMNarrator:
    def __init__(
        self,
        llm: LLM,
        *,
        attempts: int = MAX_ATTEMPTS,
        scenario_prompt: str = SCENARIO_PROMPT,
        turn_prompt: str = TURN_PROMPT,
    ) -> None:
        self._llm = llm
        self._attempts = attempts
        self._scenario_prompt = scenario_prompt
        self._turn_prompt = turn_prompt

    async def initial_scenario(self, character_name: str, theme: str) -> InitialScenario:
        prompt = render_prompt(self._scenario_prompt, build_scenario_context(character_name, theme))

        async def produce() -> InitialScenario:
            return parse_model(await self._llm("scenario", prompt), InitialScenario)

        return await retry_malformed(produce, attempts=self._attempts, stage="scenario")

    async def next_turn(self, state: SessionState, player_input: str) -> NarratorTurn:
        prompt = render_prompt(self._turn_prompt, build_turn_context(state, player_input))

        async def produce() -> NarratorTurn:
            return parse_model(await self._llm("turn", prompt), NarratorTurn)

        return await retry_malformed(
            produce, attempts=self._attempts, fallback=FALLBACK_TURN, stage="turn",
        )
