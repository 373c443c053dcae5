"""
Daily tracking aggregation.

A day's DailyTracking row is always rebuilt from every meal logged on that
day, never patched incrementally, so any recompute reflects what is stored.
"""
from __future__ import annotations
import logging
import threading
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable

from ..models import DailyTracking, Meal

logger = logging.getLogger(__name__)

# Fixed pool of locks shared by key hash; two days may share a lock, which
# only costs some contention. Callers never hold two day locks at once.
LOCK_STRIPES = 64
_locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))


def day_lock(user_id: int, day: date) -> threading.Lock:
    return _locks[hash((user_id, day)) % LOCK_STRIPES]


def sum_meals(meals: Iterable[Meal]) -> Dict[str, Any]:
    calories = 0
    protein = carbs = fat = Decimal('0.00')
    count = 0
    for m in meals:
        calories += int(m.calories)
        protein += m.protein
        carbs += m.carbs
        fat += m.fat
        count += 1
    return {
        'total_calories': calories,
        'total_protein': protein,
        'total_carbs': carbs,
        'total_fat': fat,
        'meal_count': count,
    }


def recompute_daily_tracking(store: Any, user_id: int, day: date) -> DailyTracking:
    """Re-sum all of the user's meals for `day` and upsert the tracking row.

    Store failures propagate as StoreUnavailableError; the recompute is never
    skipped silently.

    The lock only serialises recomputes inside one process. With several
    worker processes two recomputes for the same day can still interleave;
    each one re-reads every meal, so the last upsert to land wins and the row
    is correct again after the next mutation of that day.
    """
    with day_lock(user_id, day):
        meals = store.get_meals_by_date(user_id, day)
        totals = DailyTracking(user_id=user_id, tracking_date=day, **sum_meals(meals))
        logger.debug("Recomputed tracking user=%s day=%s calories=%s meals=%s",
                     user_id, day, totals.total_calories, totals.meal_count)
        return store.upsert_daily_tracking(user_id, day, totals.totals_row())
