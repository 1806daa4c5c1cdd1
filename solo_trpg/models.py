"""Core domain models.

Every component of the engine operates on these types. Pydantic is used
for validation and serialisation at every data boundary: narrator output
is validated into NarratorTurn / InitialScenario, and the HTTP layer
dumps SessionState by alias so the wire format stays camelCase.
"""

from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SessionPhase = Literal["introduction", "middle", "climax", "ending"]
MessageType = Literal["gm", "player", "system"]
Difficulty = Literal["normal", "hard", "extreme"]
SuccessLevel = Literal["critical", "extreme", "hard", "regular", "failure", "fumble"]
EndType = Literal["success", "fail", "time_up"]

ABILITY_NAMES = ("STR", "CON", "POW", "DEX", "APP", "SIZ", "INT", "EDU")
INVENTORY_MAX = 10


class WireModel(BaseModel):
    """Base for models exchanged with the narrator and the HTTP layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class Session(WireModel):
    session_id: str
    scene_index: int = 0
    phase: SessionPhase = "introduction"
    summary: str = ""
    theme: str = ""
    outline: str = ""  # narrator-only
    guidance: str = ""  # narrator-only
    end_type: EndType | None = None
    end_reason: str = ""
    initial_inventory: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Character
# ---------------------------------------------------------------------------

class Profile(WireModel):
    name: str = ""
    occupation: str = ""
    age: str = ""
    gender: str = ""
    traits: str = ""


class Abilities(BaseModel):
    STR: int = 0
    CON: int = 0
    POW: int = 0
    DEX: int = 0
    APP: int = 0
    SIZ: int = 0
    INT: int = 0
    EDU: int = 0


class DerivedValues(BaseModel):
    SAN: int = 0
    luck: int = 0
    idea: int = 0
    knowledge: int = 0
    HP: int = 0
    MP: int = 0


class Resources(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_san: int = Field(0, alias="currentSAN")
    max_san: int = Field(0, alias="maxSAN")
    current_hp: int = Field(0, alias="currentHP")
    max_hp: int = Field(0, alias="maxHP")
    current_mp: int = Field(0, alias="currentMP")
    max_mp: int = Field(0, alias="maxMP")


class Character(WireModel):
    profile: Profile = Field(default_factory=Profile)
    abilities: Abilities = Field(default_factory=Abilities)
    derived: DerivedValues = Field(default_factory=DerivedValues)
    skills: dict[str, int] = Field(default_factory=dict)
    resources: Resources = Field(default_factory=Resources)
    inventory: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

class World(WireModel):
    objective: str = ""
    flags: list[str] = Field(default_factory=list)
    npcs: list[dict] = Field(default_factory=list)  # opaque passthrough


# ---------------------------------------------------------------------------
# Log (append-only)
# ---------------------------------------------------------------------------

class LogMessage(WireModel):
    id: str
    type: MessageType
    text: str
    timestamp: int


class GameLog(WireModel):
    """Append-only message history.

    Message ids come from a counter owned by the log itself, so two
    sessions never share id state.
    """

    messages: list[LogMessage] = Field(default_factory=list)
    next_id: int = 1

    def append(self, type: MessageType, text: str) -> LogMessage:
        now = int(time.time() * 1000)
        if self.messages and now < self.messages[-1].timestamp:
            now = self.messages[-1].timestamp
        msg = LogMessage(id=f"msg-{self.next_id}", type=type, text=text, timestamp=now)
        self.next_id += 1
        self.messages.append(msg)
        return msg

    def recent(self, count: int) -> list[LogMessage]:
        return self.messages[-count:] if count > 0 else []

    def count(self, type: MessageType) -> int:
        return sum(1 for m in self.messages if m.type == type)


class SessionState(WireModel):
    """Root aggregate for one play session."""

    session: Session
    pc: Character = Field(default_factory=Character)
    world: World = Field(default_factory=World)
    log: GameLog = Field(default_factory=GameLog)


def new_session_state(session_id: str, theme: str = "") -> SessionState:
    """Create an empty session: blank character, empty world and log."""
    return SessionState(session=Session(session_id=session_id, theme=theme))


# ---------------------------------------------------------------------------
# Narrator I/O
# ---------------------------------------------------------------------------

class CheckRequest(WireModel):
    skill: str
    difficulty: Difficulty = "normal"
    purpose: str = ""
    failure_hint: str = ""


class CheckResult(WireModel):
    skill: str
    target_value: int
    roll: int
    success_level: SuccessLevel


class ResourcePatch(BaseModel):
    """Absolute new values for the depletable pools."""

    model_config = ConfigDict(populate_by_name=True)

    current_san: int | None = Field(None, alias="currentSAN")
    current_hp: int | None = Field(None, alias="currentHP")
    current_mp: int | None = Field(None, alias="currentMP")


class StatePatch(WireModel):
    resources: ResourcePatch | None = None
    flags_add: list[str] | None = None
    flags_remove: list[str] | None = None
    inventory_add: list[str] | None = None
    inventory_remove: list[str] | None = None
    objective: str | None = None


class EndSignal(WireModel):
    type: EndType
    reason: str = ""


class NarratorTurn(WireModel):
    player_facing_text: str
    choices: list[str] | None = None
    check_request: CheckRequest | None = None
    state_patch: StatePatch | None = None
    end_signal: EndSignal | None = None


class InitialScenario(WireModel):
    outline: str = ""
    guidance: str = ""
    introduction_text: str
    objective: str = ""
    initial_flags: list[str] = Field(default_factory=list)
    initial_inventory: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class SessionResult(WireModel):
    end_type: EndType
    summary: str
    gains: list[str] = Field(default_factory=list)
    losses: list[str] = Field(default_factory=list)
    final_resources: Resources
    final_flags: list[str] = Field(default_factory=list)


class TurnReport(WireModel):
    """What one controller step produced, for the presentation layer."""

    messages: list[LogMessage] = Field(default_factory=list)
    choices: list[str] = Field(default_factory=list)
    check_request: CheckRequest | None = None
    check_result: CheckResult | None = None
    end_signal: EndSignal | None = None
    phase: str = "awaiting_input"
