# ============================================================================
# SafetyHub Reminders — Configuration
# ============================================================================
# Reminder runs receive a ReminderConfig instead of reading the environment
# themselves. The app builds one per run with ReminderConfig.from_env().
# ============================================================================

import hmac
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from app.messaging.providers import SendGridProvider

# env key -> (attribute, default, type)
DEFAULT_CONFIG = {
    "SENDGRID_API_KEY": ("sendgrid_api_key", "", "string"),
    "SENDGRID_FROM_EMAIL": ("from_email", "", "string"),
    "SENDGRID_FROM_NAME": ("from_name", "SafetyHub", "string"),
    "COMPANY_NAME": ("company_name", "Safety Management System", "string"),
    "APP_URL": ("app_url", "http://localhost:8000", "string"),
    "CRON_SECRET": ("cron_secret", "", "string"),
    "SAFETYHUB_SCHEDULER": ("scheduler_enabled", False, "bool"),
}


class ConfigurationError(RuntimeError):
    """A required external-service setting is missing."""


def _cast(value: str, value_type: str):
    if value_type == "bool":
        return value.strip().lower() in ("true", "1", "yes", "on")
    return value


@dataclass(frozen=True)
class ReminderConfig:
    sendgrid_api_key: str = ""
    from_email: str = ""
    from_name: str = "SafetyHub"
    company_name: str = "Safety Management System"
    app_url: str = "http://localhost:8000"
    cron_secret: str = ""
    scheduler_enabled: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReminderConfig":
        environ = os.environ if environ is None else environ
        values = {}
        for key, (attr, default, vtype) in DEFAULT_CONFIG.items():
            raw = environ.get(key)
            values[attr] = default if raw in (None, "") else _cast(raw, vtype)
        return cls(**values)

    @property
    def training_link(self) -> str:
        return f"{self.app_url.rstrip('/')}/training"

    def require_delivery(self):
        """Fail the whole run up front when email cannot possibly be sent."""
        if not self.sendgrid_api_key:
            raise ConfigurationError("SENDGRID_API_KEY environment variable is not configured")

    def cron_authorized(self, authorization: Optional[str]) -> bool:
        """
        Scheduled triggers must present 'Bearer <CRON_SECRET>'. With no secret
        configured the check is disabled.
        """
        if not self.cron_secret:
            return True
        expected = f"Bearer {self.cron_secret}"
        return hmac.compare_digest((authorization or "").encode(), expected.encode())


def build_provider(config: ReminderConfig) -> SendGridProvider:
    """Email provider wired to this run's configuration."""
    return SendGridProvider(config={
        "SENDGRID_API_KEY": config.sendgrid_api_key,
        "SENDGRID_FROM_EMAIL": config.from_email,
        "SENDGRID_FROM_NAME": config.from_name,
    })
