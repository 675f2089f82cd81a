"""
SafetyHub Training Module
Courses with validity periods and per-person completion records.
"""
from .routes import register_training_routes
from .models import init_training_schema

__all__ = [
    "register_training_routes",
    "init_training_schema",
]
