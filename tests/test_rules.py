"""Tests for solo_trpg.rules — target values and success tiers."""

import pytest

from solo_trpg.models import CheckResult
from solo_trpg.rules import (
    SUCCESS_LEVEL_LABELS,
    check_result_input,
    classify_success,
    compute_target_value,
    describe_check,
    resolve_check,
)


class TestComputeTargetValue:
    @pytest.mark.parametrize("rating, difficulty, expected", [
        (60, "normal", 60),
        (60, "hard", 30),
        (60, "extreme", 12),
        (61, "hard", 30),
        (61, "extreme", 12),
        (0, "extreme", 0),
    ])
    def test_values(self, rating, difficulty, expected) -> None:
        assert compute_target_value(rating, difficulty) == expected

    def test_unknown_difficulty_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown difficulty"):
            compute_target_value(50, "impossible")


class TestClassifySuccess:
    @pytest.mark.parametrize("roll, rating, expected", [
        (96, 50, "fumble"),
        (96, 51, "failure"),
        (1, 10, "critical"),
        (1, 0, "critical"),
        (100, 80, "fumble"),
        (100, 0, "fumble"),
        (12, 60, "extreme"),
        (13, 60, "hard"),
        (30, 60, "hard"),
        (31, 60, "regular"),
        (60, 60, "regular"),
        (61, 60, "failure"),
        (99, 80, "failure"),
        (2, 0, "failure"),
    ])
    def test_boundaries(self, roll, rating, expected) -> None:
        assert classify_success(roll, rating) == expected

    @pytest.mark.parametrize("rating", [0, 5, 25, 50, 51, 80])
    def test_total_over_every_roll(self, rating) -> None:
        for roll in range(1, 101):
            assert classify_success(roll, rating) in SUCCESS_LEVEL_LABELS

    def test_tiers_nest_for_rating_fifty(self) -> None:
        tiers = [classify_success(r, 50) for r in range(1, 101)]
        assert tiers[0] == "critical"
        assert tiers[1:10] == ["extreme"] * 9
        assert tiers[10:25] == ["hard"] * 15
        assert tiers[25:50] == ["regular"] * 25
        assert tiers[50:95] == ["failure"] * 45
        assert tiers[95:] == ["fumble"] * 5


class TestResolveCheck:
    def test_hard_check_reports_halved_target(self, fixed_dice) -> None:
        result = resolve_check("Locksmith", 60, "hard", fixed_dice([40]))
        assert result == CheckResult(skill="Locksmith", target_value=30, roll=40, success_level="regular")

    def test_difficulty_does_not_change_the_tier(self, fixed_dice) -> None:
        normal = resolve_check("Listen", 60, "normal", fixed_dice([25]))
        extreme = resolve_check("Listen", 60, "extreme", fixed_dice([25]))
        assert normal.success_level == extreme.success_level == "hard"
        assert extreme.target_value == 12

    def test_default_dice(self) -> None:
        result = resolve_check("Dodge", 25, "normal")
        assert 1 <= result.roll <= 100


class TestDescriptions:
    def test_describe_check(self) -> None:
        result = CheckResult(skill="Spot Hidden", target_value=65, roll=12, success_level="extreme")
        assert describe_check(result) == "Check: Spot Hidden (target 65) → rolled 12 → Extreme success"

    def test_check_result_input(self) -> None:
        result = CheckResult(skill="Locksmith", target_value=30, roll=99, success_level="failure")
        assert check_result_input(result) == "[check result] Locksmith: Failure"
