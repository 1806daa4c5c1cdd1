"""Post-session summary."""

from __future__ import annotations

from solo_trpg.models import SessionResult, SessionState

END_TYPE_LABELS = {
    "success": "Success",
    "fail": "Failure",
    "time_up": "Out of time",
}


def summarize_session(state: SessionState) -> SessionResult:
    """Build the result screen data from a session's final state.

    Gains are flags raised plus items picked up during play; losses are
    resource pools below their starting values plus starting items no
    longer carried. A session with no recorded end counts as a failure.
    """
    session = state.session
    end_type = session.end_type or "fail"

    if session.end_type is None:
        summary = "The session stopped before the story reached its end."
    else:
        reason = session.end_reason.rstrip(".") or "The story is over"
        summary = f"{END_TYPE_LABELS[end_type]}: {reason}."
    if state.world.objective:
        summary += f" Last objective: {state.world.objective}."

    start_items = set(session.initial_inventory)
    gains = list(state.world.flags)
    gains += [item for item in state.pc.inventory if item not in start_items]

    losses: list[str] = []
    res, derived = state.pc.resources, state.pc.derived
    for label, start, current in (
        ("HP", derived.HP, res.current_hp),
        ("SAN", derived.SAN, res.current_san),
        ("MP", derived.MP, res.current_mp),
    ):
        if current < start:
            losses.append(f"{label} {start} → {current}")
    losses += [item for item in session.initial_inventory if item not in state.pc.inventory]

    return SessionResult(
        end_type=end_type,
        summary=summary,
        gains=gains,
        losses=losses,
        final_resources=res.model_copy(),
        final_flags=list(state.world.flags),
    )
