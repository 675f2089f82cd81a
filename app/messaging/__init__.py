# ============================================================================
# SafetyHub Messaging Module
# ============================================================================
# Outbound notification providers. Email via SendGrid is the only channel
# the training reminders use.
# ============================================================================

from .providers import BaseProvider, ProviderResult, ProviderStatus, MessagePayload, SendGridProvider

__all__ = [
    "BaseProvider",
    "ProviderResult",
    "ProviderStatus",
    "MessagePayload",
    "SendGridProvider",
]
