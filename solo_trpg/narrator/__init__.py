"""Narrators — the external storyteller behind every turn.

A narrator answers two requests (see base.Narrator):
  initial_scenario(character_name, theme) -> InitialScenario
  next_turn(state, player_input)          -> NarratorTurn

Implementations:
  ScriptedNarrator  — deterministic seven-beat mansion scenario
  LLMNarrator       — Handlebars prompt + LLM completion + JSON validation,
                      with bounded retries on malformed output

build_narrator(config) picks one from get_config() output.
"""

from typing import Any

from solo_trpg.llm import HttpLLM
from solo_trpg.models import new_session_state
from solo_trpg.prompts import PromptError, build_scenario_context, build_turn_context, render_prompt

from .base import (  # noqa: F401
    FALLBACK_TURN,
    MAX_ATTEMPTS,
    MalformedNarratorOutput,
    Narrator,
    NarratorError,
    NarratorUnavailable,
    retry_malformed,
)
from .generative import LLMNarrator  # noqa: F401
from .parsing import extract_json_object, parse_model  # noqa: F401
from .scripted import ScriptedNarrator  # noqa: F401


def build_narrator(config: dict[str, Any]) -> Narrator:
    """Construct the narrator selected by config["narrator"]."""
    if config["narrator"] == "scripted":
        return ScriptedNarrator()

    conn = config["llm_connection"]
    if not conn.get("provider_url"):
        raise ValueError("LLM narrator selected but no provider URL is configured")
    llm = HttpLLM(
        provider_url=conn["provider_url"],
        api_key=conn.get("api_key", ""),
        provider_format=conn.get("provider_format", "koboldcpp"),
        model=conn.get("model", ""),
        timeout=float(conn.get("timeout", 120.0)),
        max_retries=int(conn.get("max_retries", 2)),
    )
    prompts = config.get("prompts", {})
    kwargs: dict[str, Any] = {}
    if prompts.get("scenario"):
        _check_template("scenario", prompts["scenario"], build_scenario_context("", ""))
        kwargs["scenario_prompt"] = prompts["scenario"]
    if prompts.get("turn"):
        _check_template("turn", prompts["turn"], build_turn_context(new_session_state("config-check"), ""))
        kwargs["turn_prompt"] = prompts["turn"]
    return LLMNarrator(llm, attempts=int(config.get("narrator_attempts", MAX_ATTEMPTS)), **kwargs)


def _check_template(name: str, template: str, context: dict[str, Any]) -> None:
    """Render a configured template once so a broken one fails at startup."""
    try:
        render_prompt(template, context)
    except PromptError as e:
        raise ValueError(f"Invalid {name} prompt template: {e}") from e
