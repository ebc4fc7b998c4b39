from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from src.io.http import StoreHttpClient
from src.io.record_store import StoreSettings
from src.profile.schema import ALLOWED_EMAIL_DOMAINS, is_institutional_email

logger = logging.getLogger(__name__)

_AUTH_PREFIX = "auth/v1"


class IdentityError(RuntimeError):
    """Raised when registration, verification or login is rejected."""


@dataclass(frozen=True, slots=True)
class AuthSession:
    user_id: str
    email: str
    name: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> AuthSession:
        if not isinstance(payload, dict):
            raise IdentityError("Identity service returned an unexpected response.")
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        user_id = str(user.get("id") or "").strip()
        if not user_id:
            raise IdentityError("Identity service response did not include a user id.")
        metadata = user.get("user_metadata") or {}
        return cls(
            user_id=user_id,
            email=str(user.get("email") or ""),
            name=str(metadata.get("name") or "User"),
        )


def _require_institutional_email(email: str) -> None:
    if not is_institutional_email(email):
        domains = " or ".join(f"@{domain}" for domain in ALLOWED_EMAIL_DOMAINS)
        raise IdentityError(f"Email must end with {domains}.")


class IdentityClient:
    """Register, one-time-code verification and password login."""

    def __init__(self, client: StoreHttpClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> IdentityClient:
        return cls(settings.build_client())

    def close(self) -> None:
        self._client.close()

    def register(self, name: str, email: str, password: str) -> None:
        _require_institutional_email(email)
        logger.info("Registering %s", email)
        try:
            self._client.post_json(
                f"{_AUTH_PREFIX}/signup",
                payload={"email": email, "password": password, "data": {"name": name}},
            )
        except requests.RequestException as exc:
            raise IdentityError("Error registering user.") from exc

    def send_code(self, email: str) -> None:
        _require_institutional_email(email)
        try:
            self._client.post_json(
                f"{_AUTH_PREFIX}/resend",
                payload={"type": "signup", "email": email},
            )
        except requests.RequestException as exc:
            raise IdentityError("Error sending verification code.") from exc

    def verify_code(self, email: str, code: str) -> AuthSession:
        logger.info("Verifying %s", email)
        try:
            payload = self._client.post_json(
                f"{_AUTH_PREFIX}/verify",
                payload={"type": "signup", "email": email, "token": code.strip()},
            )
        except requests.RequestException as exc:
            raise IdentityError("Invalid verification code.") from exc
        return AuthSession.from_payload(payload)

    def login(self, email: str, password: str) -> AuthSession:
        logger.info("Login request for %s", email)
        try:
            payload = self._client.post_json(
                f"{_AUTH_PREFIX}/token",
                payload={"email": email, "password": password},
                params={"grant_type": "password"},
            )
        except requests.RequestException as exc:
            raise IdentityError("Invalid email or password.") from exc
        return AuthSession.from_payload(payload)
