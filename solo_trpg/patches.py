"""State patch reducer.

apply_patch() turns a narrator-issued StatePatch into a new SessionState
plus the summary lines shown in the transcript. The input state is never
touched; the returned state is a deep copy.

Rules:
  resources   absolute new values, clamped to 0..max; the summary shows
              the delta actually applied
  flags       adding a present flag / removing an absent one is a no-op
  inventory   adds stop silently at INVENTORY_MAX items; removing an
              absent item is a no-op
  objective   replaced whenever present
"""

from __future__ import annotations

from solo_trpg.models import INVENTORY_MAX, Resources, SessionState, StatePatch

# (patch field, current field, max field, label) in summary order
_RESOURCE_FIELDS = [
    ("current_hp", "current_hp", "max_hp", "HP"),
    ("current_san", "current_san", "max_san", "SAN"),
    ("current_mp", "current_mp", "max_mp", "MP"),
]


def _signed(delta: int) -> str:
    return f"+{delta}" if delta >= 0 else str(delta)


def _apply_resources(resources: Resources, patch_values, summaries: list[str]) -> None:
    for patch_field, current_field, max_field, label in _RESOURCE_FIELDS:
        requested = getattr(patch_values, patch_field)
        if requested is None:
            continue
        before = getattr(resources, current_field)
        after = max(0, min(getattr(resources, max_field), requested))
        setattr(resources, current_field, after)
        summaries.append(f"{label} {_signed(after - before)}")


def apply_patch(state: SessionState, patch: StatePatch) -> tuple[SessionState, list[str]]:
    """Return (new_state, summaries) for patch applied to state."""
    nxt = state.model_copy(deep=True)
    summaries: list[str] = []

    if patch.resources is not None:
        _apply_resources(nxt.pc.resources, patch.resources, summaries)

    flags = nxt.world.flags
    for flag in patch.flags_add or []:
        if flag not in flags:
            flags.append(flag)
            summaries.append(f"Flag added: {flag}")

    for flag in patch.flags_remove or []:
        if flag in flags:
            flags.remove(flag)
            summaries.append(f"Flag cleared: {flag}")

    inventory = nxt.pc.inventory
    for item in patch.inventory_add or []:
        if len(inventory) < INVENTORY_MAX:
            inventory.append(item)
            summaries.append(f"Gained: {item}")

    for item in patch.inventory_remove or []:
        if item in inventory:
            inventory.remove(item)
            summaries.append(f"Used: {item}")

    if patch.objective is not None:
        nxt.world.objective = patch.objective
        summaries.append(f"Objective: {patch.objective}")

    return nxt, summaries
