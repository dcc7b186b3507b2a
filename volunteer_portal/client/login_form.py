"""Volunteer login form controller.

Validates what the volunteer typed, replaces the password with its SHA-256
digest and posts the form to the login endpoint. The JSON reply becomes a
``LoginOutcome``: either a page to navigate to or a message to show.
"""
import hashlib
import json
import logging
import re
from dataclasses import dataclass

import httpx

log = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
DEFAULT_REDIRECT = "../pages/volunteer-dashboard.html"

MSG_FILL_ALL_FIELDS = "Please fill in all fields."
MSG_INVALID_EMAIL = "Please enter a valid email address."
MSG_PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
MSG_SERVER_ERROR = "Server error. Please contact administrator if the problem persists."
MSG_BAD_STATUS = "Network response was not ok"
MSG_LOGIN_FAILED = "Login failed. Please check your credentials."
MSG_TRY_AGAIN = "An error occurred during login. Please try again."


@dataclass
class LoginOutcome:
    success: bool
    redirect: str | None = None
    error: str | None = None
    user: dict | None = None

    @classmethod
    def failed(cls, message: str) -> "LoginOutcome":
        return cls(success=False, error=message)


def hash_password(password: str) -> str:
    """SHA-256 of the UTF-8 password as 64 lowercase hex characters."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def validate_login_form(email: str, password: str) -> str | None:
    """Return the message to show, or None when the form may be submitted."""
    if not email or not password:
        return MSG_FILL_ALL_FIELDS
    if not EMAIL_PATTERN.match(email):
        return MSG_INVALID_EMAIL
    if len(password) < MIN_PASSWORD_LENGTH:
        return MSG_PASSWORD_TOO_SHORT
    return None


class LoginFormController:
    """Submits the volunteer login form to ``action_url``.

    Pass ``client`` to reuse an existing ``httpx.AsyncClient``; otherwise a
    short-lived one is opened per submission.
    """

    def __init__(self, action_url: str, client: httpx.AsyncClient | None = None, timeout: float = 10.0):
        self.action_url = action_url
        self.client = client
        self.timeout = timeout

    def validate(self, email: str, password: str) -> str | None:
        """Check the form as typed; the email is trimmed first."""
        return validate_login_form(email.strip(), password)

    async def submit(self, email: str, password: str) -> LoginOutcome:
        email = email.strip()
        problem = self.validate(email, password)
        if problem:
            return LoginOutcome.failed(problem)

        form = {"email": email, "password_hash": hash_password(password)}
        try:
            response = await self._post(form)
        except httpx.TransportError as exc:
            log.error("Login submission error: %s", exc)
            return LoginOutcome.failed(MSG_TRY_AGAIN)
        return self.interpret(response)

    async def _post(self, form: dict) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.action_url, data=form)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.action_url, data=form)

    def interpret(self, response: httpx.Response) -> LoginOutcome:
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        if not isinstance(data, dict):
            log.error("Invalid JSON response (%s): %r", response.status_code, response.text[:500])
            return LoginOutcome.failed(MSG_SERVER_ERROR)

        if not response.is_success:
            return LoginOutcome.failed(data.get("message") or MSG_BAD_STATUS)
        if not data.get("success"):
            return LoginOutcome.failed(data.get("message") or MSG_LOGIN_FAILED)
        return LoginOutcome(
            success=True,
            redirect=data.get("redirect") or DEFAULT_REDIRECT,
            user=data.get("user"),
        )
