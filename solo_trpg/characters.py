"""Character creation — ability rolls, derived values, and skill allocation.

Abilities (dice per ability):
  STR CON POW DEX APP   3d6
  SIZ INT               2d6+6
  EDU                   3d6+3

Derived values (computed once, at creation):
  SAN = POW×5   luck = POW×5   idea = INT×5   knowledge = EDU×5
  HP  = (CON+SIZ)//2          MP = POW

Skill points: EDU×20 (vocational) + INT×10 (hobby). Each skill's final
rating is its base value plus allocated points, capped at SKILL_MAX.

Starting resources: current SAN/HP/MP from the derived values; max SAN
is 99, max HP and MP equal their derived values.
"""

from __future__ import annotations

from typing import Literal, NamedTuple

from solo_trpg.dice import Dice
from solo_trpg.models import (
    ABILITY_NAMES,
    Abilities,
    Character,
    DerivedValues,
    Profile,
    Resources,
)

# (count, sides, modifier)
ABILITY_DICE: dict[str, tuple[int, int, int]] = {
    "STR": (3, 6, 0),
    "CON": (3, 6, 0),
    "POW": (3, 6, 0),
    "DEX": (3, 6, 0),
    "APP": (3, 6, 0),
    "SIZ": (2, 6, 6),
    "INT": (2, 6, 6),
    "EDU": (3, 6, 3),
}

SKILL_MAX = 80
MAX_SAN = 99

SkillCategory = Literal["exploration", "social", "physical", "technical", "combat"]


class SkillDefinition(NamedTuple):
    name: str
    base_value: int
    category: SkillCategory
    description: str


SKILL_LIST: list[SkillDefinition] = [
    # exploration
    SkillDefinition("Spot Hidden", 25, "exploration", "Notice hidden clues and anything out of place"),
    SkillDefinition("Listen", 25, "exploration", "Pick up sounds, conversations, approaching danger"),
    SkillDefinition("Library Use", 20, "exploration", "Research records, archives and books"),
    SkillDefinition("Track", 10, "exploration", "Follow footprints and traces"),
    SkillDefinition("Navigate", 10, "exploration", "Find the way without getting lost"),
    # social
    SkillDefinition("Persuade", 15, "social", "Convince with reasoned argument"),
    SkillDefinition("Fast Talk", 10, "social", "Bluff, improvise, tell small lies"),
    SkillDefinition("Intimidate", 15, "social", "Threaten and pressure"),
    SkillDefinition("Credit Rating", 15, "social", "Get by on status, authority or honesty"),
    SkillDefinition("Psychology", 10, "social", "See through lies and read intentions"),
    # physical
    SkillDefinition("Hide", 10, "physical", "Stay out of sight"),
    SkillDefinition("Stealth", 10, "physical", "Move without a sound"),
    SkillDefinition("Climb", 20, "physical", "Scale walls, cliffs and heights"),
    SkillDefinition("Dodge", 25, "physical", "Get out of harm's way"),
    SkillDefinition("First Aid", 30, "physical", "Stop bleeding, patch wounds"),
    # technical
    SkillDefinition("Locksmith", 10, "technical", "Open locks and simple latches"),
    SkillDefinition("Mechanical Repair", 10, "technical", "Fix and maintain devices"),
    SkillDefinition("Electrical Repair", 10, "technical", "Restore wiring, power and electronics"),
    SkillDefinition("Conceal", 10, "technical", "Hide objects and evidence"),
    # combat
    SkillDefinition("Brawl", 25, "combat", "Punch, grapple, improvised weapons"),
    SkillDefinition("Firearms", 20, "combat", "Pistols, bows and other ranged weapons"),
    SkillDefinition("Throw", 20, "combat", "Stones, knives, anything thrown"),
]

SKILL_CATEGORY_LABELS: dict[SkillCategory, str] = {
    "exploration": "Exploration",
    "social": "Social",
    "physical": "Physical",
    "technical": "Technical",
    "combat": "Conflict",
}

_SKILLS_BY_NAME = {s.name: s for s in SKILL_LIST}


def roll_abilities(dice: Dice) -> Abilities:
    """Roll every ability with its dice formula."""
    return Abilities(**{
        name: dice.roll_pool(*ABILITY_DICE[name]) for name in ABILITY_NAMES
    })


def calculate_derived(abilities: Abilities) -> DerivedValues:
    return DerivedValues(
        SAN=abilities.POW * 5,
        luck=abilities.POW * 5,
        idea=abilities.INT * 5,
        knowledge=abilities.EDU * 5,
        HP=(abilities.CON + abilities.SIZ) // 2,
        MP=abilities.POW,
    )


def skill_points(abilities: Abilities) -> int:
    """Total allocatable points: vocational (EDU×20) + hobby (INT×10)."""
    return abilities.EDU * 20 + abilities.INT * 10


def final_skills(allocation: dict[str, int]) -> dict[str, int]:
    """Validate an allocation and return every skill's final rating.

    Raises ValueError for unknown skills, negative allocations, or a
    rating above SKILL_MAX.
    """
    for name, points in allocation.items():
        if name not in _SKILLS_BY_NAME:
            raise ValueError(f"Unknown skill {name!r}")
        if points < 0:
            raise ValueError(f"Negative allocation for {name!r}")

    skills: dict[str, int] = {}
    for skill in SKILL_LIST:
        total = skill.base_value + allocation.get(skill.name, 0)
        if total > SKILL_MAX:
            raise ValueError(f"{skill.name} would be {total}, above the cap of {SKILL_MAX}")
        skills[skill.name] = total
    return skills


def build_character(
    profile: Profile,
    abilities: Abilities,
    allocation: dict[str, int] | None = None,
) -> Character:
    """Create a playable character from rolled abilities and a skill allocation."""
    if not profile.name.strip():
        raise ValueError("Character name is required")
    allocation = allocation or {}
    spent = sum(allocation.values())
    available = skill_points(abilities)
    if spent > available:
        raise ValueError(f"Allocated {spent} skill points, only {available} available")

    derived = calculate_derived(abilities)
    return Character(
        profile=profile,
        abilities=abilities,
        derived=derived,
        skills=final_skills(allocation),
        resources=Resources(
            current_san=derived.SAN,
            max_san=MAX_SAN,
            current_hp=derived.HP,
            max_hp=derived.HP,
            current_mp=derived.MP,
            max_mp=derived.MP,
        ),
        inventory=[],
    )
