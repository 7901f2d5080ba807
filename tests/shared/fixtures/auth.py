"""Shared test doubles for the auth flows."""

import re
from datetime import datetime, timedelta

from stockplan.domain.shared.time import utc_now
from stockplan.infrastructure.email import MailerService, MailMessage

TEST_JWT_SECRET = "test-jwt-secret-key-for-unit-tests"  # NOQA: S105
TEST_EMAIL = "trader@example.com"
TEST_PASSWORD = "correct-horse-battery"  # NOQA: S105


class FakeClock:
    """Settable clock; starts at the real current time so JWT iat checks pass."""

    def __init__(self, now: datetime | None = None):
        self.now = now or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingMailer(MailerService):
    """Keeps every message; optionally fails every send."""

    def __init__(self, fail: bool = False):
        self.sent: list[MailMessage] = []
        self.fail = fail

    async def send(self, message: MailMessage) -> None:
        if self.fail:
            msg = "SMTP unavailable"
            raise ConnectionError(msg)
        self.sent.append(message)

    @property
    def last_code(self) -> str:
        match = re.search(r"\b(\d{6})\b", self.sent[-1].body)
        assert match is not None
        return match.group(1)
