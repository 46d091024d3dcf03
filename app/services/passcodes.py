"""One-time passcode issuance and verification."""

from __future__ import annotations

import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.clients import RecordStore, ResendEmailClient

logger = logging.getLogger(__name__)

PASSCODE_PARTITION_KEY = "passcode"
PASSCODE_LENGTH = 6
PASSCODE_TTL = timedelta(minutes=10)

_DEV_PASSCODE_PATTERN = re.compile(r"^\d{6}$")


class PasscodeError(Exception):
    """Base class for rejected verification attempts."""


class PasscodeNotFoundError(PasscodeError):
    pass


class PasscodeExpiredError(PasscodeError):
    pass


class PasscodeMismatchError(PasscodeError):
    pass


@dataclass(slots=True)
class IssuedPasscode:
    email: str
    code: str
    expires_at: datetime
    delivered: bool


def generate_passcode() -> str:
    return str(secrets.randbelow(9 * 10 ** (PASSCODE_LENGTH - 1)) + 10 ** (PASSCODE_LENGTH - 1))


def render_passcode_email(code: str) -> str:
    return f"""
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="font-size: 24px;">Expense Companion</h1>
  <p style="color: #333; font-size: 16px;">Your verification code is:</p>
  <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #F6821F;">{code}</p>
  <p style="color: #666; font-size: 14px;">This code is valid for 10 minutes.</p>
  <p style="color: #999; font-size: 12px;">If you did not request this code, you can ignore this email.</p>
</div>
""".strip()


class PasscodeService:
    """Issue short-lived codes by email and verify them exactly once.

    Without an email client the service runs in development mode: codes are
    logged instead of sent and any six-digit code is accepted.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        email_client: Optional[ResendEmailClient] = None,
        ttl: timedelta = PASSCODE_TTL,
    ) -> None:
        self._store = store
        self._email = email_client
        self._ttl = ttl

    @property
    def dev_mode(self) -> bool:
        return self._email is None

    async def issue(self, email: str, *, now: Optional[datetime] = None) -> IssuedPasscode:
        current = now or datetime.now(timezone.utc)
        code = generate_passcode()
        expires_at = current + self._ttl
        self._store.put_item(
            {
                "pk": PASSCODE_PARTITION_KEY,
                "sk": email,
                "code": code,
                "expires_at": expires_at.isoformat(),
            }
        )
        self.sweep_expired(now=current)

        if self._email is None:
            logger.info("[DEV MODE] Passcode for %s: %s", email, code)
            return IssuedPasscode(email=email, code=code, expires_at=expires_at, delivered=False)

        await self._email.send(
            to=email,
            subject="Your Expense Companion verification code",
            html=render_passcode_email(code),
        )
        return IssuedPasscode(email=email, code=code, expires_at=expires_at, delivered=True)

    def verify(self, email: str, code: str, *, now: Optional[datetime] = None) -> None:
        """Consume the stored challenge, raising a ``PasscodeError`` on rejection."""
        if self._email is None:
            if not _DEV_PASSCODE_PATTERN.match(code):
                raise PasscodeMismatchError("Invalid verification code.")
            logger.info("[DEV MODE] Passcode accepted for %s", email)
            return

        record = self._store.get_item(partition_key=PASSCODE_PARTITION_KEY, sort_key=email)
        if not record:
            logger.info("No passcode found for %s", email)
            raise PasscodeNotFoundError(
                "Verification code not found. Please request a new code."
            )

        current = now or datetime.now(timezone.utc)
        if datetime.fromisoformat(record["expires_at"]) < current:
            self._store.delete_item(partition_key=PASSCODE_PARTITION_KEY, sort_key=email)
            logger.info("Passcode expired for %s", email)
            raise PasscodeExpiredError(
                "Verification code has expired. Please request a new code."
            )

        if not hmac.compare_digest(record["code"], code):
            logger.info("Incorrect passcode submitted for %s", email)
            raise PasscodeMismatchError("Verification code is incorrect.")

        self._store.delete_item(partition_key=PASSCODE_PARTITION_KEY, sort_key=email)
        logger.info("Passcode verified for %s", email)

    def sweep_expired(self, *, now: Optional[datetime] = None) -> int:
        current = now or datetime.now(timezone.utc)
        removed = 0
        for record in self._store.query_items(partition_key=PASSCODE_PARTITION_KEY):
            if datetime.fromisoformat(record["expires_at"]) < current:
                self._store.delete_item(
                    partition_key=PASSCODE_PARTITION_KEY, sort_key=record["sk"]
                )
                removed += 1
        return removed


__all__ = [
    "IssuedPasscode",
    "PASSCODE_TTL",
    "PasscodeError",
    "PasscodeExpiredError",
    "PasscodeMismatchError",
    "PasscodeNotFoundError",
    "PasscodeService",
    "generate_passcode",
]
