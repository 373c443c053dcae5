from __future__ import annotations
from typing import Any

from flask import current_app


def get_store() -> Any:
    """The store built (or injected) by create_app for this application."""
    return current_app.extensions['macrotrack.store']


def get_analyzer() -> Any:
    return current_app.extensions['macrotrack.analyzer']
