from __future__ import annotations
from datetime import date
from flask import Blueprint, request, jsonify, g
from .utils import parse_date
from ..middlewares.auth import require_auth
from ..controllers.coaching_controller import coaching_for_day_controller
from ..extensions import get_store

bp = Blueprint('coaching', __name__, url_prefix='/api/coaching')


@bp.get('/today')
@require_auth
def coaching_today():
    return jsonify(coaching_for_day_controller(get_store(), g.user_id, date.today()))


@bp.get('')
@require_auth
def coaching_by_date():
    day = parse_date(request.args.get('date'), default=date.today())
    return jsonify(coaching_for_day_controller(get_store(), g.user_id, day))
