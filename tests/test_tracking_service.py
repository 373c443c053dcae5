from __future__ import annotations
import threading
import time
from datetime import date, timedelta
from decimal import Decimal

import pytest

from macrotrack_backend.app.errors import StoreUnavailableError
from macrotrack_backend.app.services import tracking_service
from macrotrack_backend.app.services.tracking_service import day_lock, recompute_daily_tracking

DAY = date(2026, 3, 14)


def _meal(store, user_id, calories, protein='10.00', carbs='20.00', fat='5.00', day=DAY):
    return store.create_meal({
        'user_id': user_id, 'meal_type': 'lunch', 'name': 'meal', 'calories': calories,
        'protein': Decimal(protein), 'carbs': Decimal(carbs), 'fat': Decimal(fat),
        'meal_date': day, 'ai_estimated': False,
    })


def test_two_meals_sum_to_daily_totals(store):
    _meal(store, 1, 500, protein='30.25')
    _meal(store, 1, 700, protein='12.10')
    tracking = recompute_daily_tracking(store, 1, DAY)
    assert tracking.total_calories == 1200
    assert tracking.meal_count == 2
    assert tracking.total_protein == Decimal('42.35')
    assert tracking.total_carbs == Decimal('40.00')


def test_only_counts_that_user_and_day(store):
    _meal(store, 1, 500)
    _meal(store, 2, 900)
    _meal(store, 1, 300, day=date(2026, 3, 15))
    tracking = recompute_daily_tracking(store, 1, DAY)
    assert tracking.total_calories == 500
    assert tracking.meal_count == 1


def test_recompute_is_idempotent(store):
    _meal(store, 1, 450)
    first = recompute_daily_tracking(store, 1, DAY)
    second = recompute_daily_tracking(store, 1, DAY)
    assert first == second
    assert len(store.tracking) == 1


def test_recompute_with_no_meals_keeps_zero_row(store):
    meal = _meal(store, 1, 450)
    recompute_daily_tracking(store, 1, DAY)
    store.delete_meal(1, meal.id)
    tracking = recompute_daily_tracking(store, 1, DAY)
    assert tracking.total_calories == 0
    assert tracking.meal_count == 0
    assert store.get_daily_tracking(1, DAY) is not None


def test_store_failure_surfaces(store):
    _meal(store, 1, 450)
    store.fail = True
    with pytest.raises(StoreUnavailableError):
        recompute_daily_tracking(store, 1, DAY)


def test_day_locks_stay_bounded(store):
    seen = set()
    for i in range(5000):
        day = DAY + timedelta(days=i % 400)
        recompute_daily_tracking(store, i, day)
        seen.add(id(day_lock(i, day)))
    assert len(seen) <= tracking_service.LOCK_STRIPES
    assert day_lock(1, DAY) is day_lock(1, DAY)


class SlowStore:
    """Delays the meal read so concurrent recomputes overlap without the lock."""

    def __init__(self, store):
        self._store = store

    def __getattr__(self, name):
        return getattr(self._store, name)

    def get_meals_by_date(self, user_id, day):
        meals = self._store.get_meals_by_date(user_id, day)
        time.sleep(0.05)
        return meals


def test_concurrent_recomputes_leave_one_correct_row(store):
    _meal(store, 1, 500)
    slow = SlowStore(store)
    barrier = threading.Barrier(2)
    results = []

    def worker(calories):
        barrier.wait()
        if calories:
            _meal(store, 1, calories)
        results.append(recompute_daily_tracking(slow, 1, DAY))

    threads = [threading.Thread(target=worker, args=(c,)) for c in (0, 700)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 2
    assert len(store.tracking) == 1
    # whichever recompute ran second saw both meals
    assert store.get_daily_tracking(1, DAY).total_calories == 1200
