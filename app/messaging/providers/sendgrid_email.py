# ============================================================================
# SafetyHub Messaging — SendGrid Email Provider
# ============================================================================

from .base import BaseProvider, ProviderResult, ProviderStatus, MessagePayload
import re
import logging

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class SendGridProvider(BaseProvider):
    """
    Provider for email via SendGrid.

    Environment Variables:
    - SENDGRID_API_KEY: SendGrid API key
    - SENDGRID_FROM_EMAIL: Verified sender email
    - SENDGRID_FROM_NAME: Sender display name (optional)
    """

    channel = "email"
    display_name = "SendGrid Email"

    def _load_config(self):
        self.api_key = self._get_env("SENDGRID_API_KEY")
        self.from_email = self._get_env("SENDGRID_FROM_EMAIL")
        self.from_name = self._get_env("SENDGRID_FROM_NAME", "SafetyHub")
        self._client = None

    def _get_client(self):
        """Lazy-load SendGrid client."""
        if self._client is None and self.api_key:
            from sendgrid import SendGridAPIClient
            self._client = SendGridAPIClient(self.api_key)
        return self._client

    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    async def get_status(self) -> ProviderStatus:
        if not self.is_configured():
            return ProviderStatus.NOT_CONFIGURED

        try:
            response = self._get_client().client.user.profile.get()
            if response.status_code == 200:
                return ProviderStatus.READY
            return ProviderStatus.DEGRADED
        except Exception as e:
            logger.error(f"SendGrid status check failed: {e}")
            return ProviderStatus.UNAVAILABLE

    def validate_address(self, address: str) -> bool:
        if not address:
            return False
        return bool(EMAIL_PATTERN.match(address.strip()))

    async def send(self, payload: MessagePayload) -> ProviderResult:
        """Send email via SendGrid."""
        if not self.api_key:
            logger.info(
                "SendGrid disabled, would send email to=%s subject=%r", payload.to, payload.subject,
            )
            return ProviderResult.skip("SendGrid API key not configured")

        if not self.from_email:
            return ProviderResult.skip("Sender address not configured")

        if not self.validate_address(payload.to):
            return ProviderResult.fail(f"Invalid email address: {payload.to}")

        try:
            from sendgrid.helpers.mail import Mail, Email, To, Content

            from_email = Email(self.from_email, self.from_name)
            subject = payload.subject or "Message from SafetyHub"

            mail = Mail(from_email, To(payload.to.strip()), subject, Content("text/plain", payload.body))
            if payload.body_html:
                mail.add_content(Content("text/html", payload.body_html))

            response = self._get_client().send(mail)

            message_id = None
            headers = getattr(response, "headers", None) or {}
            if "X-Message-Id" in headers:
                message_id = headers["X-Message-Id"]

            if response.status_code in (200, 201, 202):
                return ProviderResult.ok(
                    message_id=message_id,
                    external_status="sent",
                    raw_response={"status_code": response.status_code, "message_id": message_id},
                )
            return ProviderResult.fail(
                f"SendGrid returned status {response.status_code}",
                raw_response={"status_code": response.status_code},
            )

        except Exception as e:
            logger.error(f"SendGrid send failed for {payload.to}: {e}")
            return ProviderResult.fail(str(e))
