from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from src.io.http import StoreHttpClient
from src.profile.schema import UserProfile

logger = logging.getLogger(__name__)

STORE_URL_ENV = "SCHOLARIX_STORE_URL"
STORE_KEY_ENV = "SCHOLARIX_STORE_KEY"
TIMEOUT_ENV = "SCHOLARIX_REQUEST_TIMEOUT_SECONDS"

SCHOLARSHIPS_TABLE = "scholarships"
PROFILE_TABLE = "profile"
_REST_PREFIX = "rest/v1"


class ConfigurationError(ValueError):
    """Raised when the external store is not configured."""


class RecordStoreError(RuntimeError):
    """Raised when the record store cannot be read or written."""


@dataclass(frozen=True, slots=True)
class StoreSettings:
    url: str
    service_key: str
    timeout_seconds: float = 20.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreSettings:
        env = os.environ if environ is None else environ
        url = (env.get(STORE_URL_ENV) or "").strip()
        service_key = (env.get(STORE_KEY_ENV) or "").strip()
        missing = [name for name, value in ((STORE_URL_ENV, url), (STORE_KEY_ENV, service_key)) if not value]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        raw_timeout = (env.get(TIMEOUT_ENV) or "").strip()
        try:
            timeout_seconds = float(raw_timeout) if raw_timeout else 20.0
        except ValueError as exc:
            raise ConfigurationError(f"{TIMEOUT_ENV} must be a number, got {raw_timeout!r}.") from exc
        if timeout_seconds <= 0:
            raise ConfigurationError(f"{TIMEOUT_ENV} must be positive.")
        return cls(url=url, service_key=service_key, timeout_seconds=timeout_seconds)

    def build_client(self) -> StoreHttpClient:
        return StoreHttpClient(
            base_url=self.url,
            api_key=self.service_key,
            timeout_seconds=self.timeout_seconds,
        )


def _profile_from_rows(rows: Any) -> UserProfile:
    if not isinstance(rows, list) or not isinstance(rows[0], dict):
        raise RecordStoreError(f"Unexpected profile payload of type {type(rows).__name__}.")
    return UserProfile.from_mapping(rows[0])


class RecordStore:
    """Keyed profile reads/upserts and bulk scholarship reads."""

    def __init__(self, client: StoreHttpClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> RecordStore:
        return cls(settings.build_client())

    @classmethod
    def from_env(cls) -> RecordStore:
        return cls.from_settings(StoreSettings.from_env())

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RecordStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_scholarships(self) -> list[dict[str, Any]]:
        try:
            payload = self._client.get_json(
                f"{_REST_PREFIX}/{SCHOLARSHIPS_TABLE}",
                params={"select": "*"},
            )
        except requests.RequestException as exc:
            raise RecordStoreError(f"Error fetching scholarships: {exc}") from exc

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RecordStoreError(
                f"Unexpected scholarships payload of type {type(payload).__name__}."
            )
        records = [row for row in payload if isinstance(row, dict)]
        logger.info("Fetched %d scholarships from the record store", len(records))
        return records

    def get_profile(self, user_id: str) -> UserProfile | None:
        try:
            rows = self._client.get_json(
                f"{_REST_PREFIX}/{PROFILE_TABLE}",
                params={"select": "*", "user_id": f"eq.{user_id}", "limit": 1},
            )
        except requests.RequestException as exc:
            raise RecordStoreError(f"Error reading profile {user_id}: {exc}") from exc

        if not rows:
            logger.info("Profile not found for user_id=%s", user_id)
            return None
        return _profile_from_rows(rows)

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        if not profile.user_id:
            raise RecordStoreError("Cannot save a profile without a user_id.")
        try:
            rows = self._client.post_json(
                f"{_REST_PREFIX}/{PROFILE_TABLE}",
                payload=[profile.to_record()],
                params={"on_conflict": "user_id"},
                headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            )
        except requests.RequestException as exc:
            raise RecordStoreError(f"Error saving profile {profile.user_id}: {exc}") from exc

        logger.info("Saved profile for user_id=%s", profile.user_id)
        if not rows:
            return profile
        return _profile_from_rows(rows)
