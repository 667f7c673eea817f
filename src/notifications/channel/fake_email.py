"""Fake email adapter — records sent emails for testing and local development."""

from uuid import uuid4

from notifications.channel.email_port import DeliveryResult, EmailMessage, EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that keeps messages in memory."""

    def __init__(self):
        self.sent_emails: list[EmailMessage] = []
        self.should_succeed = True
        self.should_raise = False
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed", should_raise=False):
        """Make deliveries fail, either with a failed result or by raising."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.should_raise = should_raise

    def send(self, message: EmailMessage) -> DeliveryResult:
        if self.should_raise:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return DeliveryResult(status="failed", error=self.failure_reason)

        self.sent_emails.append(message)
        return DeliveryResult(status="sent", message_id=f"email-{uuid4().hex[:12]}")

    def reset(self):
        self.sent_emails.clear()
        self.configure()
