# ============================================================================
# SafetyHub Messaging — Base Provider Interface
# ============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict
from enum import Enum
import os


class ProviderStatus(str, Enum):
    """Provider health status."""
    READY = "ready"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    NOT_CONFIGURED = "not_configured"


@dataclass
class ProviderResult:
    """
    Result from a provider operation.

    Exactly one of three outcomes: sent (success), skipped (the provider
    declined for a policy reason, e.g. missing sender configuration) or
    failed (error holds the detail).
    """
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    message_id: Optional[str] = None
    external_status: Optional[str] = None
    error: Optional[str] = None
    raw_response: Optional[Dict] = None
    metadata: Dict = field(default_factory=dict)

    @classmethod
    def ok(cls, message_id: str = None, **kwargs):
        return cls(success=True, message_id=message_id, **kwargs)

    @classmethod
    def skip(cls, reason: str, **kwargs):
        return cls(success=False, skipped=True, reason=reason, **kwargs)

    @classmethod
    def fail(cls, error: str, **kwargs):
        return cls(success=False, error=error, **kwargs)

    @property
    def outcome(self) -> str:
        if self.success:
            return "sent"
        if self.skipped:
            return "skipped"
        return "failed"


@dataclass
class MessagePayload:
    """Standardized message payload for providers."""
    to: str  # Recipient address
    body: str
    subject: Optional[str] = None
    body_html: Optional[str] = None
    metadata: Dict = field(default_factory=dict)


class BaseProvider(ABC):
    """
    Abstract base class for outbound notification providers.

    Each provider must implement:
    - channel: The channel identifier
    - send(): Send a message
    - get_status(): Check provider health
    - is_configured(): Check if provider has required config
    """

    channel: str = "base"
    display_name: str = "Base Provider"

    def __init__(self, config: Dict = None):
        """
        Initialize provider with optional config override.
        Keys missing from config fall back to environment variables.
        """
        self.config = config or {}
        self._load_config()

    def _load_config(self):
        """Load configuration. Override in subclasses."""
        pass

    def _get_env(self, key: str, default: str = None) -> Optional[str]:
        """Get config value or environment variable."""
        return self.config.get(key) or os.environ.get(key, default)

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if provider has all required configuration."""
        pass

    @abstractmethod
    async def send(self, payload: MessagePayload) -> ProviderResult:
        """Send a message through this provider."""
        pass

    @abstractmethod
    async def get_status(self) -> ProviderStatus:
        """Check provider health/availability."""
        pass

    def validate_address(self, address: str) -> bool:
        """Override in subclasses with channel-specific validation."""
        return bool(address and address.strip())

    def __repr__(self):
        configured = "configured" if self.is_configured() else "not configured"
        return f"<{self.__class__.__name__} ({self.channel}) [{configured}]>"
