from __future__ import annotations
from flask import Blueprint, jsonify
from .utils import json_body, parse_analysis_payload, parse_optional_text, parse_text
from ..errors import ValidationError
from ..middlewares.auth import require_auth
from ..models import MealAnalysis
from ..extensions import get_analyzer

bp = Blueprint('analysis', __name__, url_prefix='/api/analysis')


@bp.post('/image')
@require_auth
def analyze_image():
    data = json_body()
    image_url = parse_text(data.get('image_url'), 'image_url')
    if not image_url.startswith(('http://', 'https://', 'data:image/')):
        raise ValidationError("image_url must be an http(s) or data:image URL")
    description = parse_optional_text(data.get('description'), 'description')
    analysis = get_analyzer().analyze_image(image_url, description)
    return jsonify({"success": True, "analysis": analysis.to_json()})


@bp.post('/description')
@require_auth
def analyze_description():
    description = parse_text(json_body().get('description'), 'description')
    analysis = get_analyzer().analyze_description(description)
    return jsonify({"success": True, "analysis": analysis.to_json()})


@bp.post('/refine')
@require_auth
def refine_estimate():
    data = json_body()
    original = data.get('original_analysis')
    if not isinstance(original, dict):
        original = {}
    original = MealAnalysis.from_json(parse_analysis_payload(original))
    feedback = parse_text(data.get('user_feedback'), 'user_feedback')
    refined = get_analyzer().refine_estimate(original, feedback)
    return jsonify({"success": True, "analysis": refined.to_json()})
