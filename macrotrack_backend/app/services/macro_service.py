"""
Macro engine: BMR / TDEE / macro targets and adherence-based coaching tips.

Everything here is pure arithmetic on already-validated inputs.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import UndefinedTargetError


# Mifflin-St Jeor + activity multiplier
_ACTIVITY = {
    'sedentary': 1.2,
    'light': 1.375,
    'moderate': 1.55,
    'active': 1.725,
    'very_active': 1.9,
}

# goal -> (calorie adjustment, protein ratio, carbs ratio, fat ratio)
_GOALS = {
    'bulk': (300, 0.30, 0.45, 0.25),
    'lose': (-400, 0.35, 0.35, 0.30),
    'lean': (-200, 0.32, 0.42, 0.26),
}

KCAL_PER_GRAM = {'protein': 4, 'carbs': 4, 'fat': 9}

UNDER_TARGET_PCT = 80
OVER_TARGET_PCT = 110
ON_TRACK_LOW_PCT = 90

_MOTIVATION = {
    'bulk': "Perfect calorie intake for muscle building! Keep up the consistent eating.",
    'lose': "Excellent calorie deficit maintained. Stay consistent for best results!",
    'lean': "You're right on track with your lean gains goal. Great work!",
}
FALLBACK_TIP = "Keep tracking your meals for better insights!"


@dataclass(frozen=True)
class MacroTargets:
    target_calories: int
    target_protein: int
    target_carbs: int
    target_fat: int

    def as_dict(self) -> Dict[str, int]:
        return {
            'target_calories': self.target_calories,
            'target_protein': self.target_protein,
            'target_carbs': self.target_carbs,
            'target_fat': self.target_fat,
        }


@dataclass(frozen=True)
class MacroAmounts:
    """Calories plus protein/carbs/fat grams, used both for totals and targets."""
    calories: float
    protein: float
    carbs: float
    fat: float


@dataclass(frozen=True)
class CoachingTip:
    tip: str
    category: str


def round_half_up(value: float) -> int:
    # round() is banker's rounding; targets round .5 upwards
    return int(math.floor(value + 0.5))


def calculate_bmr(weight_kg: float, height_cm: float, age: int, gender: str) -> float:
    """Basal metabolic rate in kcal/day. 'other' uses the female constant."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if gender == 'male':
        return base + 5
    return base - 161


def calculate_tdee(bmr: float, activity_level: str) -> int:
    return round_half_up(bmr * _ACTIVITY[activity_level])


def calculate_macro_targets(tdee: int, goal: str) -> MacroTargets:
    adjustment, protein_ratio, carbs_ratio, fat_ratio = _GOALS[goal]
    calories = tdee + adjustment
    # Each gram value is rounded on its own; they need not add back up exactly.
    return MacroTargets(
        target_calories=calories,
        target_protein=round_half_up(calories * protein_ratio / KCAL_PER_GRAM['protein']),
        target_carbs=round_half_up(calories * carbs_ratio / KCAL_PER_GRAM['carbs']),
        target_fat=round_half_up(calories * fat_ratio / KCAL_PER_GRAM['fat']),
    )


def targets_for_metrics(weight_kg: float, height_cm: float, age: int, gender: str,
                        activity_level: str, goal: str) -> MacroTargets:
    bmr = calculate_bmr(weight_kg, height_cm, age, gender)
    return calculate_macro_targets(calculate_tdee(bmr, activity_level), goal)


def _adherence(total: float, target: Optional[float]) -> Optional[float]:
    """Percentage of target reached, or None when the target is zero or missing."""
    if target is None or target <= 0:
        return None
    return float(total) * 100 / float(target)


def generate_coaching_tips(totals: MacroAmounts, targets: MacroAmounts, goal: str) -> List[CoachingTip]:
    """Compare a day's totals with the targets and produce ordered tips.

    Order is calories, protein, carbs, fat, then the motivational tip. A macro
    whose target is zero or missing is skipped. If no target at all is usable
    the comparison is meaningless and UndefinedTargetError is raised.
    """
    cal_pct = _adherence(totals.calories, targets.calories)
    protein_pct = _adherence(totals.protein, targets.protein)
    carbs_pct = _adherence(totals.carbs, targets.carbs)
    fat_pct = _adherence(totals.fat, targets.fat)
    if cal_pct is None and protein_pct is None and carbs_pct is None and fat_pct is None:
        raise UndefinedTargetError()

    tips: List[CoachingTip] = []

    if cal_pct is not None:
        if cal_pct < UNDER_TARGET_PCT:
            tips.append(CoachingTip(
                f"You're {round_half_up(100 - cal_pct)}% under your calorie target. "
                "Consider adding a snack to reach your goal.",
                'calories',
            ))
        elif cal_pct > OVER_TARGET_PCT:
            tips.append(CoachingTip(
                f"You've exceeded your calorie target by {round_half_up(cal_pct - 100)}%. "
                "Be mindful of portion sizes for your next meal.",
                'calories',
            ))

    if protein_pct is not None:
        if protein_pct < UNDER_TARGET_PCT:
            # measured against the 80% floor, not the full target
            tips.append(CoachingTip(
                f"Your protein intake is {round_half_up(UNDER_TARGET_PCT - protein_pct)}% below target. "
                "Add lean protein like chicken, fish, or Greek yogurt.",
                'protein',
            ))
        elif protein_pct > OVER_TARGET_PCT:
            tips.append(CoachingTip("Great job on protein! You're exceeding your target.", 'protein'))

    if carbs_pct is not None:
        if carbs_pct < UNDER_TARGET_PCT:
            tips.append(CoachingTip(
                "Your carbs are running low. Consider adding rice, pasta, or whole grains to your meals.",
                'carbs',
            ))
        elif carbs_pct > OVER_TARGET_PCT:
            tips.append(CoachingTip(
                "You're high on carbs. Balance with more protein and vegetables for your next meal.",
                'carbs',
            ))

    if fat_pct is not None:
        if fat_pct < UNDER_TARGET_PCT:
            tips.append(CoachingTip(
                "Your fat intake is below target. Add healthy fats like avocado, nuts, or olive oil.",
                'fat',
            ))
        elif fat_pct > OVER_TARGET_PCT:
            tips.append(CoachingTip("You're high on fats. Choose leaner protein sources for your next meal.", 'fat'))

    if cal_pct is not None and ON_TRACK_LOW_PCT <= cal_pct <= OVER_TARGET_PCT:
        tips.append(CoachingTip(_MOTIVATION.get(goal, _MOTIVATION['lean']), 'motivation'))

    return tips or [CoachingTip(FALLBACK_TIP, 'general')]


def calculate_macro_percentages(calories: float, protein: float, carbs: float, fat: float) -> Dict[str, int]:
    """Share of total calories contributed by each macro, in whole percent."""
    if not calories or calories <= 0:
        return {'protein_percent': 0, 'carbs_percent': 0, 'fat_percent': 0}
    calories = float(calories)
    return {
        'protein_percent': round_half_up(float(protein) * KCAL_PER_GRAM['protein'] / calories * 100),
        'carbs_percent': round_half_up(float(carbs) * KCAL_PER_GRAM['carbs'] / calories * 100),
        'fat_percent': round_half_up(float(fat) * KCAL_PER_GRAM['fat'] / calories * 100),
    }
