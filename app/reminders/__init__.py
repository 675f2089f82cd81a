"""
SafetyHub Reminders Module
Training expiry reminders: daily per-course emails and the monthly digest.
"""
from .routes import register_reminder_routes
from .scheduler_jobs import init_reminder_scheduler
from .config import ReminderConfig, ConfigurationError
from .engine import run_training_reminders, ReminderQueryError
from .digest import run_monthly_expiry_alerts

__all__ = [
    "register_reminder_routes",
    "init_reminder_scheduler",
    "ReminderConfig",
    "ConfigurationError",
    "ReminderQueryError",
    "run_training_reminders",
    "run_monthly_expiry_alerts",
]
