"""Volunteer authentication.

No HTTP dependencies: ``authenticate`` raises ``LoginError`` subclasses and
the route turns them into JSON responses.
"""
import hmac
import logging
import re
import string
from dataclasses import dataclass
from datetime import date

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel

from volunteer_portal.auth.session_store import SessionData, SessionStore
from volunteer_portal.errors import (
    AccountInactiveError,
    AuthenticationError,
    BookkeepingUpdateError,
    ValidationError,
)
from volunteer_portal.services.account_repository import VolunteerRepository

log = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Login successful."

_EMAIL_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-=?^_`{|}~@.[]")
_TAG_RE = re.compile(r"<[^>]*>?")
# Compared against when the email is unknown so both failure paths do the same work
_PLACEHOLDER_DIGEST = "0" * 64


class VolunteerSummary(BaseModel):
    id: str
    email: str
    name: str


@dataclass
class LoginResult:
    user: VolunteerSummary
    session_token: str
    redirect: str
    message: str = SUCCESS_MESSAGE


def sanitize_email(value) -> str:
    """Drop every character that cannot appear in an email address."""
    if not isinstance(value, str):
        return ""
    return "".join(ch for ch in value if ch in _EMAIL_CHARS)


def sanitize_digest(value) -> str:
    if not isinstance(value, str):
        return ""
    return _TAG_RE.sub("", value).replace("\x00", "").strip()


def digests_match(stored: str | None, supplied: str) -> bool:
    """Constant-time comparison of two hex digests."""
    if not stored:
        hmac.compare_digest(_PLACEHOLDER_DIGEST.encode(), supplied.encode("utf-8"))
        return False
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def _check_input(email: str, password_digest: str) -> None:
    if not email or not password_digest:
        raise ValidationError("Email and password are required.")
    try:
        # Syntax only: intranet domains such as .local are valid addresses here
        validate_email(email, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email format.")


async def authenticate(
    repo: VolunteerRepository,
    sessions: SessionStore,
    email,
    password_digest,
    *,
    today: date,
    redirect: str,
) -> LoginResult:
    """Check a volunteer's email and password digest and open a session.

    Raises:
        ValidationError: missing fields or malformed email (no lookup is made)
        AuthenticationError: unknown email or wrong digest, indistinguishable
        AccountInactiveError: credentials match but the account is not active
        StorageError: the lookup itself failed
    """
    email = sanitize_email(email)
    password_digest = sanitize_digest(password_digest)
    _check_input(email, password_digest)

    account = await repo.get_by_email(email)
    stored = account.password if account is not None else None
    if not digests_match(stored, password_digest):
        log.info("Volunteer login rejected", extra={"email": email})
        raise AuthenticationError()

    if not account.is_active:
        log.info("Inactive volunteer login", extra={"userId": account.user_id, "status": account.status})
        raise AccountInactiveError()

    # Read the row before the update; a rollback expires it
    user = VolunteerSummary(id=account.user_id, email=account.email, name=account.display_name)
    try:
        await repo.touch_last_used(user.id, today)
    except BookkeepingUpdateError as exc:
        log.warning("Failed to update LastUsed: %s", exc, extra={"userId": user.id})

    token = sessions.create(SessionData(user_id=user.id, email=user.email, name=user.name))

    log.info("Volunteer logged in", extra={"userId": user.id, "email": user.email})
    return LoginResult(user=user, session_token=token, redirect=redirect)
