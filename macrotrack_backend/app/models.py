"""
Plain records exchanged between the store, the services and the routes.

Rows coming back from Supabase are dicts with snake_case columns; decimal
columns arrive as strings or floats and are normalised to Decimal here.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

GOALS = ('bulk', 'lose', 'lean')
GENDERS = ('male', 'female', 'other')
ACTIVITY_LEVELS = ('sedentary', 'light', 'moderate', 'active', 'very_active')
MEAL_TYPES = ('breakfast', 'lunch', 'dinner', 'snack', 'other')
TIP_CATEGORIES = ('protein', 'carbs', 'fat', 'calories', 'motivation', 'general')
CONFIDENCE_LEVELS = ('high', 'medium', 'low')

_CENTS = Decimal('0.01')


def to_decimal(value: Any) -> Optional[Decimal]:
    """Fixed two-place decimal for a numeric column value (None stays None)."""
    if value is None or value == '':
        return None
    if not isinstance(value, Decimal):
        # via str so floats like 0.1 don't drag binary noise along
        value = Decimal(str(value))
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def to_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _num(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass
class UserProfile:
    user_id: int
    goal: str
    age: Optional[int] = None
    gender: Optional[str] = None
    height: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    activity_level: Optional[str] = None
    target_calories: Optional[int] = None
    target_protein: Optional[Decimal] = None
    target_carbs: Optional[Decimal] = None
    target_fat: Optional[Decimal] = None
    timezone: str = 'UTC'
    onboarding_complete: bool = False
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'UserProfile':
        return cls(
            id=row.get('id'),
            user_id=int(row['user_id']),
            goal=row.get('goal'),
            age=row.get('age'),
            gender=row.get('gender'),
            height=to_decimal(row.get('height')),
            weight=to_decimal(row.get('weight')),
            activity_level=row.get('activity_level'),
            target_calories=row.get('target_calories'),
            target_protein=to_decimal(row.get('target_protein')),
            target_carbs=to_decimal(row.get('target_carbs')),
            target_fat=to_decimal(row.get('target_fat')),
            timezone=row.get('timezone') or 'UTC',
            onboarding_complete=bool(row.get('onboarding_complete')),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'goal': self.goal,
            'age': self.age,
            'gender': self.gender,
            'height': _num(self.height),
            'weight': _num(self.weight),
            'activity_level': self.activity_level,
            'target_calories': self.target_calories,
            'target_protein': _num(self.target_protein),
            'target_carbs': _num(self.target_carbs),
            'target_fat': _num(self.target_fat),
            'timezone': self.timezone,
            'onboarding_complete': self.onboarding_complete,
        }


@dataclass
class Meal:
    user_id: int
    meal_type: str
    name: str
    calories: int
    protein: Decimal
    carbs: Decimal
    fat: Decimal
    meal_date: date
    description: Optional[str] = None
    image_url: Optional[str] = None
    ai_estimated: bool = False
    meal_time: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Meal':
        return cls(
            id=row.get('id'),
            user_id=int(row['user_id']),
            meal_type=row.get('meal_type'),
            name=row.get('name'),
            description=row.get('description'),
            calories=int(row.get('calories') or 0),
            protein=to_decimal(row.get('protein')) or Decimal('0.00'),
            carbs=to_decimal(row.get('carbs')) or Decimal('0.00'),
            fat=to_decimal(row.get('fat')) or Decimal('0.00'),
            image_url=row.get('image_url'),
            ai_estimated=bool(row.get('ai_estimated')),
            meal_date=to_date(row.get('meal_date')),
            meal_time=row.get('meal_time'),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'meal_type': self.meal_type,
            'name': self.name,
            'description': self.description,
            'calories': self.calories,
            'protein': float(self.protein),
            'carbs': float(self.carbs),
            'fat': float(self.fat),
            'image_url': self.image_url,
            'ai_estimated': self.ai_estimated,
            'meal_date': self.meal_date.isoformat() if self.meal_date else None,
            'meal_time': self.meal_time,
        }


@dataclass
class DailyTracking:
    user_id: int
    tracking_date: date
    total_calories: int = 0
    total_protein: Decimal = Decimal('0.00')
    total_carbs: Decimal = Decimal('0.00')
    total_fat: Decimal = Decimal('0.00')
    meal_count: int = 0
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'DailyTracking':
        return cls(
            id=row.get('id'),
            user_id=int(row['user_id']),
            tracking_date=to_date(row.get('tracking_date')),
            total_calories=int(row.get('total_calories') or 0),
            total_protein=to_decimal(row.get('total_protein')) or Decimal('0.00'),
            total_carbs=to_decimal(row.get('total_carbs')) or Decimal('0.00'),
            total_fat=to_decimal(row.get('total_fat')) or Decimal('0.00'),
            meal_count=int(row.get('meal_count') or 0),
        )

    def totals_row(self) -> Dict[str, Any]:
        return {
            'total_calories': self.total_calories,
            'total_protein': self.total_protein,
            'total_carbs': self.total_carbs,
            'total_fat': self.total_fat,
            'meal_count': self.meal_count,
        }

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'tracking_date': self.tracking_date.isoformat(),
            'total_calories': self.total_calories,
            'total_protein': float(self.total_protein),
            'total_carbs': float(self.total_carbs),
            'total_fat': float(self.total_fat),
            'meal_count': self.meal_count,
        }


@dataclass
class CoachingLog:
    user_id: int
    coaching_date: date
    tip: str
    category: str
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'CoachingLog':
        return cls(
            id=row.get('id'),
            user_id=int(row['user_id']),
            coaching_date=to_date(row.get('coaching_date')),
            tip=row.get('tip') or '',
            category=row.get('category') or 'general',
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'coaching_date': self.coaching_date.isoformat(),
            'tip': self.tip,
            'category': self.category,
        }


@dataclass
class MealAnalysis:
    meal_name: str
    description: str
    calories: float
    protein: float
    carbs: float
    fat: float
    confidence: str
    ingredients: List[str] = field(default_factory=list)
    notes: str = ''

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'MealAnalysis':
        """Build from the camelCase payload the LLM is asked to return."""
        if not isinstance(data.get('ingredients'), list):
            raise TypeError("ingredients must be a list")
        return cls(
            meal_name=str(data['mealName']),
            description=str(data['description']),
            calories=float(data['calories']),
            protein=float(data['protein']),
            carbs=float(data['carbs']),
            fat=float(data['fat']),
            confidence=str(data['confidence']),
            ingredients=[str(i) for i in data['ingredients']],
            notes=str(data['notes']),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'mealName': self.meal_name,
            'description': self.description,
            'calories': self.calories,
            'protein': self.protein,
            'carbs': self.carbs,
            'fat': self.fat,
            'confidence': self.confidence,
            'ingredients': list(self.ingredients),
            'notes': self.notes,
        }
