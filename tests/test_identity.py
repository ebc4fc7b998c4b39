from __future__ import annotations

from typing import Any

import pytest
import requests

from src.io.identity import IdentityClient, IdentityError


class _FakeClient:
    def __init__(self, responses: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.responses = responses or {}
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def post_json(self, path: str, **kwargs: Any) -> Any:
        self.calls.append(("POST", path, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.get(path)

    def close(self) -> None:
        pass


def test_register_rejects_non_institutional_email_before_any_request() -> None:
    client = _FakeClient()

    with pytest.raises(IdentityError, match="@spelman.edu or @morehouse.edu"):
        IdentityClient(client).register("Ada", "ada@gmail.com", "secret")
    assert client.calls == []


def test_verify_code_and_login_return_opaque_user_identity() -> None:
    user = {"id": "user-1", "email": "ada@spelman.edu", "user_metadata": {"name": "Ada"}}
    client = _FakeClient({"auth/v1/verify": {"user": user}, "auth/v1/token": {"access_token": "t", "user": user}})
    identity = IdentityClient(client)

    verified = identity.verify_code("ada@spelman.edu", " 123456 ")
    session = identity.login("ada@spelman.edu", "secret")

    assert verified.user_id == session.user_id == "user-1"
    assert session.name == "Ada"
    assert client.calls[0][2]["payload"]["token"] == "123456"
    assert client.calls[1][2]["params"] == {"grant_type": "password"}


def test_login_failure_raises_identity_error() -> None:
    identity = IdentityClient(_FakeClient(error=requests.HTTPError("400 Client Error")))

    with pytest.raises(IdentityError, match="Invalid email or password"):
        identity.login("ada@spelman.edu", "wrong")
