from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from macrotrack_backend.app.errors import StoreUnavailableError
from macrotrack_backend.app.flask_app import create_app
from macrotrack_backend.app.models import CoachingLog, DailyTracking, Meal, MealAnalysis, UserProfile


class FakeStore:
    """In-memory stand-in for SupabaseService with the same method surface."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.profiles: Dict[int, Dict[str, Any]] = {}
        self.meals: Dict[int, Dict[str, Any]] = {}
        self.tracking: Dict[tuple, Dict[str, Any]] = {}
        self.coaching: List[Dict[str, Any]] = []
        self.images: Dict[str, bytes] = {}
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.fail = False
        self.upserts = 0
        self._next_id = 1

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _check(self) -> None:
        if self.fail:
            raise StoreUnavailableError()

    def verify_token(self, token: str) -> Any:
        return self.tokens.get(token)

    def get_user_by_open_id(self, open_id: str) -> Optional[Dict[str, Any]]:
        self._check()
        return self.users.get(open_id)

    def upsert_user(self, open_id: str, email: Optional[str] = None, name: Optional[str] = None,
                    login_method: str = 'email') -> Dict[str, Any]:
        self._check()
        row = self.users.setdefault(open_id, {'id': self._id(), 'open_id': open_id})
        row.update({k: v for k, v in {'email': email, 'name': name}.items() if v})
        return row

    def get_profile(self, user_id: int) -> Optional[UserProfile]:
        self._check()
        row = self.profiles.get(user_id)
        return UserProfile.from_row(row) if row else None

    def create_profile(self, user_id: int, fields: Dict[str, Any]) -> UserProfile:
        self._check()
        row = {**fields, 'user_id': user_id, 'id': self._id()}
        self.profiles[user_id] = row
        return UserProfile.from_row(row)

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserProfile]:
        self._check()
        row = self.profiles.get(user_id)
        if row is None:
            return None
        row.update(fields)
        return UserProfile.from_row(row)

    def get_meals_by_date(self, user_id: int, day: date) -> List[Meal]:
        self._check()
        return [Meal.from_row(r) for _, r in sorted(self.meals.items())
                if r['user_id'] == user_id and str(r['meal_date']) == day.isoformat()]

    def get_meal(self, user_id: int, meal_id: int) -> Optional[Meal]:
        self._check()
        row = self.meals.get(meal_id)
        return Meal.from_row(row) if row and row['user_id'] == user_id else None

    def create_meal(self, record: Dict[str, Any]) -> Meal:
        self._check()
        row = {**record, 'id': self._id()}
        self.meals[row['id']] = row
        return Meal.from_row(row)

    def update_meal(self, user_id: int, meal_id: int, fields: Dict[str, Any]) -> Optional[Meal]:
        self._check()
        row = self.meals.get(meal_id)
        if not row or row['user_id'] != user_id:
            return None
        row.update(fields)
        return Meal.from_row(row)

    def delete_meal(self, user_id: int, meal_id: int) -> bool:
        self._check()
        row = self.meals.get(meal_id)
        if not row or row['user_id'] != user_id:
            return False
        del self.meals[meal_id]
        return True

    def get_daily_tracking(self, user_id: int, day: date) -> Optional[DailyTracking]:
        self._check()
        row = self.tracking.get((user_id, day))
        return DailyTracking.from_row(row) if row else None

    def list_daily_tracking(self, user_id: int, start: date, end: date) -> List[DailyTracking]:
        self._check()
        return [DailyTracking.from_row(r) for (uid, d), r in sorted(self.tracking.items())
                if uid == user_id and start <= d <= end]

    def upsert_daily_tracking(self, user_id: int, day: date, totals: Dict[str, Any]) -> DailyTracking:
        self._check()
        self.upserts += 1
        row = self.tracking.setdefault((user_id, day), {'id': self._id(), 'user_id': user_id, 'tracking_date': day})
        row.update(totals)
        return DailyTracking.from_row(row)

    def get_coaching_logs(self, user_id: int, day: date) -> List[CoachingLog]:
        self._check()
        return [CoachingLog.from_row(r) for r in self.coaching
                if r['user_id'] == user_id and r['coaching_date'] == day]

    def add_coaching_logs(self, user_id: int, day: date, tips: List[Dict[str, str]]) -> List[CoachingLog]:
        self._check()
        seen = {r['category'] for r in self.coaching if r['user_id'] == user_id and r['coaching_date'] == day}
        for t in tips:
            if t['category'] not in seen:
                self.coaching.append({'id': self._id(), 'user_id': user_id, 'coaching_date': day, **t})
                seen.add(t['category'])
        return self.get_coaching_logs(user_id, day)

    def upload_image(self, user_id: int, content: bytes, filename: str) -> str:
        self._check()
        key = f"{user_id}/{filename}"
        self.images[key] = content
        return f"https://storage.test/meal-images/{key}"


class StubAnalyzer:
    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.result = MealAnalysis(
            meal_name="Chicken rice bowl",
            description="Grilled chicken over white rice with broccoli",
            calories=620,
            protein=45,
            carbs=70,
            fat=14,
            confidence='medium',
            ingredients=['chicken', 'rice', 'broccoli'],
            notes='Assumed one cup of rice',
        )

    def analyze_image(self, image_url, description=None):
        self.calls.append(('image', image_url, description))
        return self.result

    def analyze_description(self, description):
        self.calls.append(('description', description))
        return self.result

    def refine_estimate(self, original, feedback):
        self.calls.append(('refine', original, feedback))
        return self.result


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def analyzer():
    return StubAnalyzer()


@pytest.fixture
def app(store, analyzer):
    app = create_app({'TESTING': True, 'REQUIRE_JWT': False, 'DEMO_USER_ID': ''},
                     store=store, analyzer=analyzer)
    return app


@pytest.fixture
def client(app):
    c = app.test_client()
    c.environ_base['HTTP_X_USER_ID'] = '7'
    return c


@pytest.fixture
def profile_payload():
    return {
        'goal': 'lean',
        'age': 25,
        'gender': 'male',
        'height': 180,
        'weight': 75,
        'activity_level': 'moderate',
    }
