"""Narrator protocol, errors, and the malformed-output retry combinator."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from solo_trpg.models import InitialScenario, NarratorTurn, SessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3

# Shown when the narrator keeps producing output we cannot use.
FALLBACK_TURN = NarratorTurn(
    player_facing_text=(
        "(The story falters for a moment, as if the game master lost their "
        "train of thought. Try another action, or say it again.)"
    ),
    choices=["Try again", "Look around carefully"],
)


class Narrator(Protocol):
    async def initial_scenario(self, character_name: str, theme: str) -> InitialScenario: ...

    async def next_turn(self, state: SessionState, player_input: str) -> NarratorTurn: ...


class NarratorError(Exception):
    """Base class for narrator failures."""


class MalformedNarratorOutput(NarratorError):
    """Narrator output could not be parsed into the expected shape."""


async def retry_malformed(
    produce: Callable[[], Awaitable[T]],
    *,
    attempts: int = MAX_ATTEMPTS,
    fallback: T | None = None,
    stage: str = "",
) -> T:
    """Call produce() until it stops raising MalformedNarratorOutput.

    Returns fallback once every attempt came back malformed, or re-raises
    the last error when no fallback is given. Any other exception (e.g. a
    transport failure) propagates immediately.
    """
    last_error: MalformedNarratorOutput | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await produce()
        except MalformedNarratorOutput as e:
            last_error = e
            logger.warning(
                "narrator stage=%s malformed output on attempt %d/%d: %s",
                stage, attempt, attempts, e,
            )
    if fallback is not None:
        logger.warning("narrator stage=%s giving up, using fallback", stage)
        return fallback
    raise MalformedNarratorOutput(
        f"No usable {stage or 'narrator'} output after {attempts} attempts: {last_error}"
    ) from last_error


class NarratorUnavailable(NarratorError):
    """The narrator could not be reached; the turn was not applied."""
