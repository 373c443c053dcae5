from __future__ import annotations
from datetime import date, timedelta
from flask import Blueprint, request, jsonify, g
from .utils import parse_date
from ..middlewares.auth import require_auth
from ..controllers.tracking_controller import tracking_for_day_controller, tracking_history_controller
from ..extensions import get_store

bp = Blueprint('tracking', __name__, url_prefix='/api/tracking')


@bp.get('/today')
@require_auth
def tracking_today():
    return jsonify(tracking_for_day_controller(get_store(), g.user_id, date.today()))


@bp.get('')
@require_auth
def tracking_by_date():
    day = parse_date(request.args.get('date'), default=date.today())
    return jsonify(tracking_for_day_controller(get_store(), g.user_id, day))


@bp.get('/history')
@require_auth
def tracking_history():
    """Daily totals between start..end (inclusive, YYYY-MM-DD); defaults to the last 7 days."""
    today = date.today()
    end_d = parse_date(request.args.get('end'), 'end', default=today)
    start_d = parse_date(request.args.get('start'), 'start', default=end_d - timedelta(days=6))
    return jsonify(tracking_history_controller(get_store(), g.user_id, start_d, end_d))
