"""Session endpoints: create, character creation, and play."""

from contextlib import contextmanager

from fastapi import APIRouter, HTTPException, Request

from solo_trpg.characters import build_character, calculate_derived, roll_abilities, skill_points
from solo_trpg.controller import InputRequiredError, TurnController, TurnOrderError
from solo_trpg.models import Character
from solo_trpg.narrator import NarratorError
from solo_trpg.prompts import PromptError
from solo_trpg.results import summarize_session

from .models import CreateCharacter, CreateSession, InputBody

router = APIRouter()

# Narrator working notes stay out of client responses.
_HIDDEN_FIELDS = {"session": {"outline", "guidance"}}


def _get_controller(request: Request, session_id: str) -> TurnController:
    try:
        return request.app.state.store.get(session_id)
    except KeyError:
        raise HTTPException(404, "Session not found")


@contextmanager
def _turn_errors():
    """Translate controller refusals and narrator failures into HTTP errors."""
    try:
        yield
    except InputRequiredError as e:
        raise HTTPException(400, str(e))
    except TurnOrderError as e:
        raise HTTPException(409, str(e))
    except NarratorError as e:
        raise HTTPException(502, str(e))
    except PromptError as e:
        raise HTTPException(500, f"Narrator prompt could not be rendered: {e}")


def _session_view(controller: TurnController) -> dict:
    return {
        "state": controller.state.model_dump(by_alias=True, exclude=_HIDDEN_FIELDS),
        "phase": controller.phase,
        "choices": controller.choices,
        "pendingCheck": (
            controller.pending_check.model_dump(by_alias=True)
            if controller.pending_check else None
        ),
    }


@router.post("/sessions", status_code=201)
async def create_session(request: Request, body: CreateSession):
    """Open a new session with an empty character."""
    controller = request.app.state.store.create(body.theme)
    return _session_view(controller)


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str):
    """Current state, controller phase, choices and pending check."""
    return _session_view(_get_controller(request, session_id))


@router.delete("/sessions/{session_id}")
async def delete_session(request: Request, session_id: str):
    _get_controller(request, session_id)
    request.app.state.store.delete(session_id)
    return {"ok": True}


@router.post("/sessions/{session_id}/character/roll")
async def roll_character(request: Request, session_id: str):
    """Roll fresh abilities for the session's draft character."""
    controller = _get_controller(request, session_id)
    abilities = roll_abilities(request.app.state.dice)
    draft = Character(abilities=abilities, derived=calculate_derived(abilities))
    with _turn_errors():
        controller.set_character(draft)
    return {
        "abilities": abilities.model_dump(),
        "derived": draft.derived.model_dump(),
        "skillPoints": skill_points(abilities),
    }


@router.post("/sessions/{session_id}/character")
async def create_character(request: Request, session_id: str, body: CreateCharacter):
    """Finish the character from the rolled abilities and a skill allocation."""
    controller = _get_controller(request, session_id)
    abilities = controller.state.pc.abilities
    if abilities.EDU == 0:
        raise HTTPException(409, "Roll abilities before creating the character")
    try:
        character = build_character(body.profile, abilities, body.allocation)
    except ValueError as e:
        raise HTTPException(400, str(e))
    with _turn_errors():
        controller.set_character(character)
    return character.model_dump(by_alias=True)


@router.post("/sessions/{session_id}/start")
async def start_session(request: Request, session_id: str):
    """Generate the opening scenario."""
    controller = _get_controller(request, session_id)
    if not controller.state.pc.profile.name:
        raise HTTPException(409, "Create a character before starting")
    with _turn_errors():
        report = await controller.start()
    return {"report": report.model_dump(by_alias=True), **_session_view(controller)}


@router.post("/sessions/{session_id}/input")
async def submit_input(request: Request, session_id: str, body: InputBody):
    """Free text or a chosen option."""
    controller = _get_controller(request, session_id)
    with _turn_errors():
        report = await controller.submit_input(body.text)
    return {"report": report.model_dump(by_alias=True), **_session_view(controller)}


@router.post("/sessions/{session_id}/roll")
async def roll_check(request: Request, session_id: str):
    """Roll the pending check."""
    controller = _get_controller(request, session_id)
    with _turn_errors():
        report = await controller.roll()
    return {"report": report.model_dump(by_alias=True), **_session_view(controller)}


@router.get("/sessions/{session_id}/result")
async def session_result(request: Request, session_id: str):
    """Post-session summary. Available once the session has started."""
    controller = _get_controller(request, session_id)
    if not controller.started:
        raise HTTPException(409, "Session has not started")
    return summarize_session(controller.state).model_dump(by_alias=True)
