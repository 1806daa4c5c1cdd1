"""Skill resolution — target values and success tiers for d100 checks.

Tier precedence (first match wins):
  fumble    roll == 100, or skill <= 50 and roll >= 96
  critical  roll == 1
  extreme   roll <= skill // 5
  hard      roll <= skill // 2
  regular   roll <= skill
  failure   everything else

Tiers are always classified against the raw skill rating. Difficulty
only changes the target value reported to the player.
"""

from __future__ import annotations

from solo_trpg.dice import Dice, roll_percentile
from solo_trpg.models import CheckResult, Difficulty, SuccessLevel

SUCCESS_LEVEL_LABELS: dict[SuccessLevel, str] = {
    "critical": "Critical",
    "extreme": "Extreme success",
    "hard": "Hard success",
    "regular": "Regular success",
    "failure": "Failure",
    "fumble": "Fumble",
}

DIFFICULTY_LABELS: dict[Difficulty, str] = {
    "normal": "Normal",
    "hard": "Hard",
    "extreme": "Extreme",
}


def compute_target_value(skill_rating: int, difficulty: Difficulty) -> int:
    if difficulty == "normal":
        return skill_rating
    if difficulty == "hard":
        return skill_rating // 2
    if difficulty == "extreme":
        return skill_rating // 5
    raise ValueError(f"Unknown difficulty {difficulty!r}")


def classify_success(roll: int, skill_rating: int) -> SuccessLevel:
    if roll == 100 or (skill_rating <= 50 and roll >= 96):
        return "fumble"
    if roll == 1:
        return "critical"
    if roll <= skill_rating // 5:
        return "extreme"
    if roll <= skill_rating // 2:
        return "hard"
    if roll <= skill_rating:
        return "regular"
    return "failure"


def resolve_check(
    skill: str,
    skill_rating: int,
    difficulty: Difficulty,
    dice: Dice | None = None,
) -> CheckResult:
    """Roll d100 for a skill and classify the result."""
    target_value = compute_target_value(skill_rating, difficulty)
    roll = dice.roll_percentile() if dice else roll_percentile()
    return CheckResult(
        skill=skill,
        target_value=target_value,
        roll=roll,
        success_level=classify_success(roll, skill_rating),
    )


def describe_check(result: CheckResult) -> str:
    """One-line transcript summary of a resolved check."""
    return (
        f"Check: {result.skill} (target {result.target_value}) "
        f"→ rolled {result.roll} → {SUCCESS_LEVEL_LABELS[result.success_level]}"
    )


def check_result_input(result: CheckResult) -> str:
    """The synthesized player input that relays a resolved check to the narrator."""
    return f"[check result] {result.skill}: {SUCCESS_LEVEL_LABELS[result.success_level]}"
