"""
LLM-backed macro estimation for meal photos and free-text descriptions.

Talks to an OpenAI-compatible chat-completions endpoint (OpenRouter by
default) and asks for a strict JSON document matching MEAL_ANALYSIS_SCHEMA.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import AnalysisError, AnalysisUnavailableError
from ..models import CONFIDENCE_LEVELS, MealAnalysis

logger = logging.getLogger(__name__)

MEAL_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "mealName": {"type": "string", "description": "Name of the meal"},
        "description": {"type": "string", "description": "Detailed description of the meal"},
        "calories": {"type": "number", "description": "Estimated calories"},
        "protein": {"type": "number", "description": "Estimated protein in grams"},
        "carbs": {"type": "number", "description": "Estimated carbs in grams"},
        "fat": {"type": "number", "description": "Estimated fat in grams"},
        "confidence": {"type": "string", "enum": list(CONFIDENCE_LEVELS),
                       "description": "Confidence level of estimation"},
        "ingredients": {"type": "array", "items": {"type": "string"},
                        "description": "List of identified ingredients"},
        "notes": {"type": "string", "description": "Additional notes and assumptions"},
    },
    "required": ["mealName", "description", "calories", "protein", "carbs", "fat",
                 "confidence", "ingredients", "notes"],
    "additionalProperties": False,
}

_JSON_SHAPE = """{
  "mealName": "string",
  "description": "string",
  "calories": number,
  "protein": number,
  "carbs": number,
  "fat": number,
  "confidence": "high" | "medium" | "low",
  "ingredients": ["string"],
  "notes": "string"
}"""

_IMAGE_PROMPT = """You are a professional nutritionist and food analyst. Analyze this meal image and provide accurate macro estimates.

{notes}

Please analyze the meal and provide the meal name, a detailed description of what you see, estimated calories, protein (grams), carbs (grams) and fat (grams), the ingredients you can identify, your confidence level (high/medium/low) and any notes about portion size or assumptions.

Format your response as JSON with these exact keys:
{shape}

Be as accurate as possible. If you cannot see the image clearly, set confidence to "low" and explain in notes."""

_DESCRIPTION_PROMPT = """You are a professional nutritionist and food analyst. A user has described their meal. Provide accurate macro estimates based on their description.

User's meal description: "{description}"

Please provide the meal name (infer from description), a detailed analysis of what they likely ate, estimated calories, protein (grams), carbs (grams) and fat (grams), the likely ingredients, your confidence level (high/medium/low) and any notes about assumptions or portion size.

Format your response as JSON with these exact keys:
{shape}

Be as accurate as possible based on typical portion sizes. If the description is vague, set confidence to "medium" and explain assumptions in notes."""

_REFINE_PROMPT = """You are a professional nutritionist. A user has provided feedback on a meal analysis. Please refine the macro estimates based on their feedback.

Original analysis:
- Meal: {meal_name}
- Calories: {calories}
- Protein: {protein}g
- Carbs: {carbs}g
- Fat: {fat}g
- Confidence: {confidence}

User feedback: "{feedback}"

Please provide refined estimates as JSON:
{shape}"""


def parse_analysis(content: Any) -> MealAnalysis:
    """Turn the model's message content into a MealAnalysis or raise AnalysisError."""
    if not content or not isinstance(content, str):
        raise AnalysisError("No response from meal analysis model")
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise AnalysisError("Meal analysis returned malformed JSON") from exc
    if not isinstance(data, dict):
        raise AnalysisError("Meal analysis returned an unexpected payload")
    try:
        analysis = MealAnalysis.from_json(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise AnalysisError("Meal analysis response is missing fields") from exc
    if analysis.confidence not in CONFIDENCE_LEVELS:
        raise AnalysisError("Meal analysis returned an unknown confidence level")
    return analysis


class MealAnalysisService:
    def __init__(self, api_key: str, model: str, base_url: str = 'https://openrouter.ai/api/v1',
                 timeout: float = 60, session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MealAnalysisService':
        return cls(
            api_key=config.get('OPENROUTER_API_KEY') or '',
            model=config.get('OPENROUTER_MODEL') or 'openai/gpt-4o-mini',
            base_url=config.get('OPENROUTER_BASE_URL') or 'https://openrouter.ai/api/v1',
            timeout=float(config.get('LLM_TIMEOUT_SECONDS') or 60),
        )

    def close(self) -> None:
        self.session.close()

    def _invoke(self, messages: List[Dict[str, Any]]) -> MealAnalysis:
        if not self.api_key:
            raise AnalysisUnavailableError()
        payload = {
            "model": self.model,
            "messages": messages,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "meal_analysis", "strict": True, "schema": MEAL_ANALYSIS_SCHEMA},
            },
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            resp = self.session.post(f"{self.base_url}/chat/completions", json=payload,
                                     headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.exception("Meal analysis request failed")
            raise AnalysisError() from exc
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return parse_analysis(content)

    def analyze_image(self, image_url: str, description: Optional[str] = None) -> MealAnalysis:
        prompt = _IMAGE_PROMPT.format(
            notes=f"User notes: {description}" if description else "", shape=_JSON_SHAPE)
        return self._invoke([{
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
                {"type": "text", "text": prompt},
            ],
        }])

    def analyze_description(self, description: str) -> MealAnalysis:
        return self._invoke([
            {"role": "system",
             "content": "You are a professional nutritionist providing accurate macro estimates for meals described by users."},
            {"role": "user", "content": _DESCRIPTION_PROMPT.format(description=description, shape=_JSON_SHAPE)},
        ])

    def refine_estimate(self, original: MealAnalysis, feedback: str) -> MealAnalysis:
        prompt = _REFINE_PROMPT.format(
            meal_name=original.meal_name,
            calories=original.calories,
            protein=original.protein,
            carbs=original.carbs,
            fat=original.fat,
            confidence=original.confidence,
            feedback=feedback,
            shape=_JSON_SHAPE,
        )
        return self._invoke([
            {"role": "system",
             "content": "You are a professional nutritionist providing refined macro estimates based on user feedback."},
            {"role": "user", "content": prompt},
        ])
