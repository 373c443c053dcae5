from __future__ import annotations

import pytest

from macrotrack_backend.app.errors import UndefinedTargetError
from macrotrack_backend.app.services.macro_service import (
    FALLBACK_TIP,
    MacroAmounts,
    calculate_bmr,
    calculate_macro_percentages,
    calculate_macro_targets,
    calculate_tdee,
    generate_coaching_tips,
    round_half_up,
    targets_for_metrics,
)

ACTIVITY_ORDER = ['sedentary', 'light', 'moderate', 'active', 'very_active']


def test_bmr_male_uses_plus_five():
    assert calculate_bmr(75, 180, 25, 'male') == pytest.approx(1755.0)


@pytest.mark.parametrize('gender', ['female', 'other'])
def test_bmr_female_and_other_share_constant(gender):
    assert calculate_bmr(75, 180, 25, gender) == pytest.approx(1589.0)


@pytest.mark.parametrize('gender', ['male', 'female', 'other'])
def test_bmr_monotonic(gender):
    base = calculate_bmr(70, 170, 30, gender)
    assert calculate_bmr(71, 170, 30, gender) > base
    assert calculate_bmr(70, 171, 30, gender) > base
    assert calculate_bmr(70, 170, 31, gender) < base


def test_tdee_rounds_to_integer():
    tdee = calculate_tdee(1755.0, 'moderate')
    assert isinstance(tdee, int)
    assert tdee == 2720


def test_tdee_rounds_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4999) == 2


@pytest.mark.parametrize('bmr', [1200.0, 1692.5, 2100.25])
def test_tdee_strictly_increases_with_activity(bmr):
    values = [calculate_tdee(bmr, level) for level in ACTIVITY_ORDER]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_lean_targets_from_known_tdee():
    targets = calculate_macro_targets(2623, 'lean')
    assert targets.as_dict() == {
        'target_calories': 2423,
        'target_protein': 194,
        'target_carbs': 254,
        'target_fat': 70,
    }


@pytest.mark.parametrize('goal,delta', [('bulk', 300), ('lose', -400), ('lean', -200)])
def test_calorie_adjustment_per_goal(goal, delta):
    assert calculate_macro_targets(2500, goal).target_calories == 2500 + delta


@pytest.mark.parametrize('goal', ['bulk', 'lose', 'lean'])
@pytest.mark.parametrize('tdee', [1400, 1873, 2623, 3111, 4000])
def test_macro_grams_recombine_to_calories(goal, tdee):
    t = calculate_macro_targets(tdee, goal)
    recombined = t.target_protein * 4 + t.target_carbs * 4 + t.target_fat * 9
    assert abs(recombined - t.target_calories) <= 9


def test_targets_for_metrics_chains_bmr_tdee_and_goal():
    t = targets_for_metrics(75, 180, 25, 'male', 'moderate', 'lean')
    assert t.target_calories == 2720 - 200


def _targets():
    return MacroAmounts(calories=2423, protein=194, carbs=254, fat=70)


def test_under_calorie_tip_names_deficit():
    totals = MacroAmounts(calories=1500, protein=194, carbs=254, fat=70)
    tips = generate_coaching_tips(totals, _targets(), 'lean')
    assert [t.category for t in tips] == ['calories']
    assert tips[0].tip.startswith("You're 38% under your calorie target.")


def test_over_targets_in_fixed_order():
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=2400, protein=200, carbs=100, fat=90)
    tips = generate_coaching_tips(totals, targets, 'bulk')
    assert [t.category for t in tips] == ['calories', 'protein', 'carbs', 'fat']
    assert "exceeded your calorie target by 20%" in tips[0].tip
    assert tips[1].tip == "Great job on protein! You're exceeding your target."
    assert "running low" in tips[2].tip
    assert "high on fats" in tips[3].tip


def test_protein_deficit_measured_from_eighty_percent():
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=2000, protein=60, carbs=200, fat=70)
    tips = generate_coaching_tips(totals, targets, 'lose')
    assert tips[0].category == 'protein'
    assert "40% below target" in tips[0].tip
    assert tips[-1].category == 'motivation'


@pytest.mark.parametrize('goal,fragment', [
    ('bulk', 'muscle building'),
    ('lose', 'calorie deficit maintained'),
    ('lean', 'lean gains goal'),
])
def test_motivation_copy_depends_on_goal(goal, fragment):
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    tips = generate_coaching_tips(targets, targets, goal)
    assert len(tips) == 1
    assert tips[0].category == 'motivation'
    assert fragment in tips[0].tip


@pytest.mark.parametrize('calories', [1800, 2200])
def test_motivation_band_is_inclusive(calories):
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=calories, protein=150, carbs=200, fat=70)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['motivation']


def test_fallback_when_nothing_triggers():
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=1700, protein=150, carbs=200, fat=70)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert len(tips) == 1
    assert tips[0].category == 'general'
    assert tips[0].tip == FALLBACK_TIP


def test_zero_target_skips_that_macro():
    targets = MacroAmounts(calories=2000, protein=0, carbs=200, fat=None)
    totals = MacroAmounts(calories=2000, protein=10, carbs=50, fat=500)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['carbs', 'motivation']


def test_all_targets_undefined_raises():
    with pytest.raises(UndefinedTargetError):
        generate_coaching_tips(
            MacroAmounts(calories=100, protein=1, carbs=1, fat=1),
            MacroAmounts(calories=0, protein=0, carbs=None, fat=0),
            'lean',
        )


def test_macro_percentages_zero_calories():
    assert calculate_macro_percentages(0, 0, 0, 0) == {
        'protein_percent': 0, 'carbs_percent': 0, 'fat_percent': 0}


def test_macro_percentages_split():
    assert calculate_macro_percentages(2000, 150, 200, 66.67) == {
        'protein_percent': 30, 'carbs_percent': 40, 'fat_percent': 30}


def test_eighty_percent_is_not_under_target():
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=2000, protein=120, carbs=160, fat=56)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['motivation']

    totals = MacroAmounts(calories=1600, protein=150, carbs=200, fat=70)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['general']


def test_just_below_eighty_percent_is_under_target():
    targets = MacroAmounts(calories=2000, protein=150, carbs=200, fat=70)
    totals = MacroAmounts(calories=2000, protein=119.925, carbs=159.9, fat=55.965)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['protein', 'carbs', 'fat', 'motivation']

    totals = MacroAmounts(calories=1599, protein=150, carbs=200, fat=70)
    tips = generate_coaching_tips(totals, targets, 'lean')
    assert [t.category for t in tips] == ['calories']
