"""Turn controller — runs one session's turns end-to-end.

Controller states (python-statemachine):

  awaiting_input ──player_acts──▶ narrator_pending
  choice_presented ──player_acts──▶ narrator_pending
  check_pending ──dice_rolled──▶ narrator_pending
  narrator_pending ──input_awaited / choices_offered / check_requested──▶ ...
  narrator_pending ──session_ended──▶ ended (final)

A player turn:
  1. Append the player message to a working copy of the state.
  2. Ask the narrator for the next turn.
  3. Append the GM text, apply any state patch and log its summary.
  4. Hold a check request as the pending check.
  5. On an end signal, mark the session over.
  6. Commit the working copy and move the FSM to its next state.

Nothing is committed when the narrator fails or the turn is cancelled;
the FSM returns to where the turn started and the state is unchanged.
"""

from __future__ import annotations

import asyncio
import logging

from statemachine import State, StateMachine

from solo_trpg.dice import Dice
from solo_trpg.llm import LLMError
from solo_trpg.models import (
    INVENTORY_MAX,
    Character,
    CheckRequest,
    NarratorTurn,
    SessionState,
    TurnReport,
)
from solo_trpg.narrator import Narrator, NarratorUnavailable
from solo_trpg.patches import apply_patch
from solo_trpg.rules import check_result_input, describe_check, resolve_check

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TurnError(Exception):
    """Base class for requests the controller refuses."""


class InputRequiredError(TurnError, ValueError):
    """Player input was empty or whitespace."""


class TurnOrderError(TurnError):
    """The request is not valid in the controller's current state."""


class SessionNotStartedError(TurnOrderError):
    pass


class SessionAlreadyStartedError(TurnOrderError):
    pass


class SessionEndedError(TurnOrderError):
    pass


class CheckPendingError(TurnOrderError):
    """Free-text input while a check waits to be rolled."""


class NoPendingCheckError(TurnOrderError):
    """A roll was requested with no check pending."""


# ---------------------------------------------------------------------------
# FSM
# ---------------------------------------------------------------------------

class TurnFSM(StateMachine):
    awaiting_input = State(initial=True)
    narrator_pending = State()
    choice_presented = State()
    check_pending = State()
    ended = State(final=True)

    player_acts = awaiting_input.to(narrator_pending) | choice_presented.to(narrator_pending)
    dice_rolled = check_pending.to(narrator_pending)
    scenario_requested = awaiting_input.to(narrator_pending)

    input_awaited = narrator_pending.to(awaiting_input)
    choices_offered = narrator_pending.to(choice_presented)
    check_requested = narrator_pending.to(check_pending)
    session_ended = narrator_pending.to(ended)


# Event that puts the FSM back in each state a turn can start from.
_RETURN_EVENTS = {
    "awaiting_input": "input_awaited",
    "choice_presented": "choices_offered",
    "check_pending": "check_requested",
}


class TurnController:
    """Owns one session's state and serialises its turns."""

    def __init__(self, state: SessionState, narrator: Narrator, dice: Dice | None = None) -> None:
        self._state = state
        self._narrator = narrator
        self._dice = dice or Dice()
        self._fsm = TurnFSM()
        self._lock = asyncio.Lock()
        self._choices: list[str] = []
        self._pending_check: CheckRequest | None = None
        self._started = False

    # -- read side ----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> str:
        return self._fsm.current_state.id

    @property
    def choices(self) -> list[str]:
        return list(self._choices)

    @property
    def pending_check(self) -> CheckRequest | None:
        return self._pending_check

    @property
    def started(self) -> bool:
        return self._started

    @property
    def ended(self) -> bool:
        return self._fsm.ended.is_active

    # -- setup --------------------------------------------------------------

    def set_character(self, character: Character) -> None:
        if self._started:
            raise SessionAlreadyStartedError("The character is fixed once the session has started")
        if self._lock.locked() or self._fsm.narrator_pending.is_active:
            raise TurnOrderError("The character cannot change while the opening scenario is prepared")
        self._state = self._state.model_copy(update={"pc": character.model_copy(deep=True)})

    async def start(self) -> TurnReport:
        """Request the opening scenario and seed the world from it."""
        async with self._lock:
            if self._started:
                raise SessionAlreadyStartedError("Session already started")

            self._fsm.scenario_requested()
            try:
                scenario = await self._narrator.initial_scenario(
                    self._state.pc.profile.name, self._state.session.theme,
                )
            except LLMError as e:
                self._fsm.input_awaited()
                raise NarratorUnavailable(str(e)) from e
            except BaseException:
                self._fsm.input_awaited()
                raise

            working = self._state.model_copy(deep=True)
            working.session.outline = scenario.outline
            working.session.guidance = scenario.guidance
            working.world.objective = scenario.objective
            working.world.flags = list(dict.fromkeys(scenario.initial_flags))
            inventory = working.pc.inventory + scenario.initial_inventory
            working.pc.inventory = inventory[:INVENTORY_MAX]
            working.session.initial_inventory = list(working.pc.inventory)
            intro = working.log.append("gm", scenario.introduction_text)

            self._state = working
            self._started = True
            self._fsm.input_awaited()
            logger.info("session %s started", working.session.session_id)
            return TurnReport(messages=[intro], phase=self.phase)

    # -- turns --------------------------------------------------------------

    async def submit_input(self, text: str) -> TurnReport:
        """Run one turn for free-text or choice input."""
        text = (text or "").strip()
        if not text:
            raise InputRequiredError("Player input is required")

        async with self._lock:
            self._require_started()
            if self._fsm.check_pending.is_active:
                raise CheckPendingError("Roll the pending check before acting")
            working = self._state.model_copy(deep=True)
            first = len(working.log.messages)
            origin = self.phase
            self._fsm.player_acts()
            return await self._run_turn(working, text, first=first, origin=origin)

    async def roll(self) -> TurnReport:
        """Resolve the pending check and feed its outcome to the narrator."""
        async with self._lock:
            self._require_started()
            request = self._pending_check
            if request is None or not self._fsm.check_pending.is_active:
                raise NoPendingCheckError("No check is waiting to be rolled")

            rating = self._state.pc.skills.get(request.skill)
            if rating is None:
                logger.warning("check on unknown skill %r, using rating 0", request.skill)
                rating = 0
            result = resolve_check(request.skill, rating, request.difficulty, self._dice)
            logger.info(
                "check %s rating=%d difficulty=%s roll=%d -> %s",
                result.skill, rating, request.difficulty, result.roll, result.success_level,
            )

            working = self._state.model_copy(deep=True)
            first = len(working.log.messages)
            working.log.append("system", describe_check(result))
            self._pending_check = None
            self._fsm.dice_rolled()
            try:
                report = await self._run_turn(
                    working, check_result_input(result), first=first, origin="check_pending",
                )
            except BaseException:
                self._pending_check = request
                raise
            report.check_result = result
            return report

    def offer_check(self, request: CheckRequest) -> bool:
        """Hold request as the pending check.

        Returns False, keeping the current check, when one is already pending.
        """
        if self._pending_check is not None:
            logger.warning(
                "ignoring check request for %r, %r is still pending",
                request.skill, self._pending_check.skill,
            )
            return False
        if not self._fsm.narrator_pending.is_active:
            raise TurnOrderError("Checks are only requested by a narrator turn")
        self._pending_check = request
        self._fsm.check_requested()
        return True

    # -- internals ----------------------------------------------------------

    def _require_started(self) -> None:
        if not self._started:
            raise SessionNotStartedError("Session has not started")
        if self.ended:
            raise SessionEndedError("Session has ended")

    def _restore(self, origin: str) -> None:
        getattr(self._fsm, _RETURN_EVENTS[origin])()

    async def _run_turn(
        self, working: SessionState, player_input: str, *, first: int, origin: str,
    ) -> TurnReport:
        try:
            working.log.append("player", player_input)
            try:
                turn = await self._narrator.next_turn(working, player_input)
            except LLMError as e:
                raise NarratorUnavailable(str(e)) from e
        except BaseException:
            logger.warning("turn abandoned in session %s", working.session.session_id)
            self._restore(origin)
            raise
        return self._commit(working, turn, first)

    def _commit(self, working: SessionState, turn: NarratorTurn, first: int) -> TurnReport:
        working.log.append("gm", turn.player_facing_text)

        if turn.state_patch is not None:
            working, summaries = apply_patch(working, turn.state_patch)
            if summaries:
                working.log.append("system", "State update: " + " / ".join(summaries))

        if turn.end_signal is not None:
            working.log.append("system", f"Session ended: {turn.end_signal.reason}")
            working.session.phase = "ending"
            working.session.end_type = turn.end_signal.type
            working.session.end_reason = turn.end_signal.reason

        working.session.scene_index += 1
        self._state = working
        self._choices = list(turn.choices or [])

        if turn.end_signal is not None:
            self._choices = []
            self._fsm.session_ended()
            logger.info(
                "session %s ended (%s): %s",
                working.session.session_id, turn.end_signal.type, turn.end_signal.reason,
            )
        elif turn.check_request is not None:
            self.offer_check(turn.check_request)
        elif self._choices:
            self._fsm.choices_offered()
        else:
            self._fsm.input_awaited()

        return TurnReport(
            messages=working.log.messages[first:],
            choices=self._choices,
            check_request=self._pending_check,
            end_signal=turn.end_signal,
            phase=self.phase,
        )
