from __future__ import annotations
import logging
import os
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from ..errors import StoreUnavailableError
from ..models import CoachingLog, DailyTracking, Meal, UserProfile

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
}


def _rows(res: Any) -> List[Dict[str, Any]]:
    data = getattr(res, 'data', None)
    if not data:
        return []
    if isinstance(data, list):
        return data
    return [data]


def _first(res: Any) -> Optional[Dict[str, Any]]:
    rows = _rows(res)
    return rows[0] if rows else None


def _jsonable(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Decimal and date values as strings, which is what PostgREST expects for numeric/date columns."""
    out: Dict[str, Any] = {}
    for k, v in payload.items():
        if isinstance(v, Decimal):
            v = str(v)
        elif isinstance(v, date):
            v = v.isoformat()
        out[k] = v
    return out


class SupabaseService:
    """Persistence, storage and identity lookups backed by one Supabase client.

    The client is handed in by whoever builds the app; nothing here is cached
    at module level. Every failure of the client is logged and re-raised as
    StoreUnavailableError so callers can decide whether to retry.
    """

    def __init__(self, client: Client, bucket: str = 'meal-images') -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SupabaseService':
        url = config.get('SUPABASE_URL')
        key = config.get('SUPABASE_SERVICE_ROLE_KEY')
        if not url or not key:
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
        return cls(create_client(url, key), bucket=config.get('SUPABASE_BUCKET') or 'meal-images')

    def _execute(self, query: Any, what: str) -> Any:
        try:
            return query.execute()
        except Exception as exc:
            logger.exception("Supabase %s failed", what)
            raise StoreUnavailableError() from exc

    # Identity
    def verify_token(self, token: str) -> Any:
        """Return the Supabase auth user for an access token, or None if it is not valid."""
        try:
            res = self.client.auth.get_user(token)
        except Exception:
            logger.info("Supabase rejected access token")
            return None
        return getattr(res, 'user', None)

    def get_user_by_open_id(self, open_id: str) -> Optional[Dict[str, Any]]:
        res = self._execute(
            self.client.table('users').select('*').eq('open_id', open_id).limit(1),
            'get user')
        return _first(res)

    def upsert_user(self, open_id: str, email: Optional[str] = None, name: Optional[str] = None,
                    login_method: str = 'email') -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'open_id': open_id,
            'login_method': login_method,
            'last_signed_in': datetime.now(timezone.utc).isoformat(),
        }
        if email:
            payload['email'] = email
        if name:
            payload['name'] = name
        res = self._execute(
            self.client.table('users').upsert(payload, on_conflict='open_id'), 'upsert user')
        return _first(res) or payload

    # Profiles
    def get_profile(self, user_id: int) -> Optional[UserProfile]:
        res = self._execute(
            self.client.table('user_profiles').select('*').eq('user_id', user_id).limit(1),
            'get profile')
        row = _first(res)
        return UserProfile.from_row(row) if row else None

    def create_profile(self, user_id: int, fields: Dict[str, Any]) -> UserProfile:
        payload = _jsonable({**fields, 'user_id': user_id})
        res = self._execute(self.client.table('user_profiles').insert(payload), 'create profile')
        return UserProfile.from_row(_first(res) or payload)

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserProfile]:
        res = self._execute(
            self.client.table('user_profiles').update(_jsonable(fields)).eq('user_id', user_id),
            'update profile')
        row = _first(res)
        return UserProfile.from_row(row) if row else None

    # Meals
    def get_meals_by_date(self, user_id: int, day: date) -> List[Meal]:
        res = self._execute(
            self.client.table('meals').select('*')
            .eq('user_id', user_id)
            .eq('meal_date', day.isoformat())
            .order('id', desc=False),
            'get meals')
        return [Meal.from_row(r) for r in _rows(res)]

    def get_meal(self, user_id: int, meal_id: int) -> Optional[Meal]:
        res = self._execute(
            self.client.table('meals').select('*').eq('id', meal_id).eq('user_id', user_id).limit(1),
            'get meal')
        row = _first(res)
        return Meal.from_row(row) if row else None

    def create_meal(self, record: Dict[str, Any]) -> Meal:
        res = self._execute(self.client.table('meals').insert(_jsonable(record)), 'create meal')
        return Meal.from_row(_first(res) or record)

    def update_meal(self, user_id: int, meal_id: int, fields: Dict[str, Any]) -> Optional[Meal]:
        res = self._execute(
            self.client.table('meals').update(_jsonable(fields)).eq('id', meal_id).eq('user_id', user_id),
            'update meal')
        row = _first(res)
        return Meal.from_row(row) if row else None

    def delete_meal(self, user_id: int, meal_id: int) -> bool:
        res = self._execute(
            self.client.table('meals').delete().eq('id', meal_id).eq('user_id', user_id),
            'delete meal')
        return bool(_rows(res))

    # Daily tracking
    def get_daily_tracking(self, user_id: int, day: date) -> Optional[DailyTracking]:
        res = self._execute(
            self.client.table('daily_tracking').select('*')
            .eq('user_id', user_id).eq('tracking_date', day.isoformat()).limit(1),
            'get daily tracking')
        row = _first(res)
        return DailyTracking.from_row(row) if row else None

    def list_daily_tracking(self, user_id: int, start: date, end: date) -> List[DailyTracking]:
        res = self._execute(
            self.client.table('daily_tracking').select('*')
            .eq('user_id', user_id)
            .gte('tracking_date', start.isoformat())
            .lte('tracking_date', end.isoformat())
            .order('tracking_date', desc=False),
            'list daily tracking')
        return [DailyTracking.from_row(r) for r in _rows(res)]

    def upsert_daily_tracking(self, user_id: int, day: date, totals: Dict[str, Any]) -> DailyTracking:
        payload = _jsonable({'user_id': user_id, 'tracking_date': day, **totals})
        res = self._execute(
            self.client.table('daily_tracking').upsert(payload, on_conflict='user_id,tracking_date'),
            'upsert daily tracking')
        return DailyTracking.from_row(_first(res) or payload)

    # Coaching logs
    def get_coaching_logs(self, user_id: int, day: date) -> List[CoachingLog]:
        res = self._execute(
            self.client.table('coaching_logs').select('*')
            .eq('user_id', user_id).eq('coaching_date', day.isoformat())
            .order('id', desc=False),
            'get coaching logs')
        return [CoachingLog.from_row(r) for r in _rows(res)]

    def add_coaching_logs(self, user_id: int, day: date, tips: List[Dict[str, str]]) -> List[CoachingLog]:
        """Insert tips unless a tip of the same category already exists for that day."""
        if tips:
            records = [{'user_id': user_id, 'coaching_date': day.isoformat(), **t} for t in tips]
            self._execute(
                self.client.table('coaching_logs').upsert(
                    records, on_conflict='user_id,coaching_date,category', ignore_duplicates=True),
                'add coaching logs')
        return self.get_coaching_logs(user_id, day)

    # Storage
    def upload_image(self, user_id: int, content: bytes, filename: str) -> str:
        ext = (os.path.splitext(filename or '')[1] or '.jpg').lower()
        key = f"{user_id}/{uuid.uuid4().hex}{ext}"
        opts = {
            "content-type": _MIME_TYPES.get(ext, 'application/octet-stream'),
            "upsert": "true",
            "cache-control": "3600",
        }
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(path=key, file=content, file_options=opts)
            public = bucket.get_public_url(key)
        except Exception as exc:
            logger.exception("Supabase storage upload failed for user %s", user_id)
            raise StoreUnavailableError() from exc
        # older clients wrap the url as {'data': {'publicUrl': ...}}
        if isinstance(public, dict):
            data = public.get('data') if isinstance(public.get('data'), dict) else public
            return data.get('publicUrl') or data.get('public_url') or ''
        return str(public)
