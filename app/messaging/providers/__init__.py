# ============================================================================
# SafetyHub Messaging Providers
# ============================================================================

from .base import BaseProvider, ProviderResult, ProviderStatus, MessagePayload
from .sendgrid_email import SendGridProvider

__all__ = [
    "BaseProvider",
    "ProviderResult",
    "ProviderStatus",
    "MessagePayload",
    "SendGridProvider",
]
