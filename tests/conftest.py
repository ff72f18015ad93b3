"""Shared fixtures for Graph adapter tests."""

from __future__ import annotations

from typing import Any

import pytest

from ms365_graph.config import GraphSettings
from ms365_graph.services import auth_client


class FakeRefresher:
    """Records refresh calls and returns canned token data."""

    def __init__(self, token_data: dict[str, Any] | None = None) -> None:
        self.calls: list[tuple[str, str, str, str]] = []
        self.token_data = token_data or {
            "access_token": "new-access",
            "refresh_token": "new-refresh",
        }

    async def refresh(
        self, refresh_token: str, client_id: str, client_secret: str, tenant_id: str
    ) -> dict[str, Any]:
        self.calls.append((refresh_token, client_id, client_secret, tenant_id))
        return self.token_data


@pytest.fixture
def settings() -> GraphSettings:
    return GraphSettings(
        client_secret="secret",
        api_root="https://graph.test/v1.0",
        authority="https://login.test",
        auth_service_url="http://auth.test",
        service_secret="service-secret",
    )


@pytest.fixture
def refresher() -> FakeRefresher:
    return FakeRefresher()


@pytest.fixture
def make_refresher() -> type[FakeRefresher]:
    return FakeRefresher


@pytest.fixture(autouse=True)
def _clear_auth_cache():
    auth_client.clear_token_cache()
    yield
    auth_client.clear_token_cache()
