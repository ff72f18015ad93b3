"""
MS365 authentication adapter.

Credential sources, the adapter-owned token store and the refresh-token
exchange against the Microsoft identity platform.
"""

import asyncio
import inspect
import logging
from typing import Optional, Protocol, Sequence, Union, Dict, Any

import httpx
from azure.core.credentials import TokenCredential, AccessToken
from azure.core.credentials_async import AsyncTokenCredential

from ...config import GraphSettings
from ...services.auth_client import get_credential_token
from .errors import TokenRefreshError
from .models import TokenPair


log = logging.getLogger("ms365_graph.auth")

GRAPH_DEFAULT_SCOPES = ("https://graph.microsoft.com/.default",)


class CredentialSource(Protocol):
    """Anything that can hand out a current access token on demand."""

    async def get_token(self) -> Optional[str]:
        ...


class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new access token (and maybe a new refresh token)."""

    async def refresh(
        self,
        refresh_token: str,
        client_id: str,
        client_secret: str,
        tenant_id: str,
    ) -> Dict[str, Any]:
        ...


class CredentialStore:
    """
    Adapter-scoped access/refresh token pair.

    Lives in memory for the lifetime of the adapter and is only changed by
    set_tokens() or by a successful refresh. The lock serializes refreshes.
    """

    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        # Bumped on every change so a waiting caller can tell a refresh already happened
        self.generation = 0
        self.lock = asyncio.Lock()

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Replace the whole pair."""
        self.access_token = access_token
        self.refresh_token = refresh_token or None
        self.generation += 1

    def update(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Apply a refresh result; an absent refresh token keeps the stored one."""
        self.access_token = access_token
        if refresh_token:
            self.refresh_token = refresh_token
        self.generation += 1

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.generation += 1

    def snapshot(self) -> Optional[TokenPair]:
        if not self.access_token:
            return None
        return TokenPair(access_token=self.access_token, refresh_token=self.refresh_token)


class MicrosoftTokenRefresher:
    """Refresh-token grant against login.microsoftonline.com (v2.0 endpoint)."""

    def __init__(self, settings: GraphSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    async def refresh(
        self,
        refresh_token: str,
        client_id: str,
        client_secret: str,
        tenant_id: str,
    ) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new token set.

        Returns:
            Token endpoint response (access_token, optional refresh_token, expires_in, ...)

        Raises:
            TokenRefreshError: If the endpoint rejects the grant or omits access_token
        """
        url = self.settings.token_url(tenant_id)
        data = {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        if self.settings.scopes:
            data["scope"] = " ".join(self.settings.scopes)

        async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self.transport) as client:
            response = await client.post(
                url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"}
            )
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise TokenRefreshError(
                    f"Token refresh failed: {e.response.status_code} - {e.response.text}"
                ) from e
            token_data = response.json()

        if not token_data.get("access_token"):
            raise TokenRefreshError("Failed to refresh access token")
        log.info("Refreshed access token for tenant %s", tenant_id)
        return token_data


class AzureCredentialSource:
    """
    Use any azure-core credential (sync or async) as a CredentialSource.

    Example:
        from azure.identity.aio import DefaultAzureCredential
        source = AzureCredentialSource(DefaultAzureCredential())
    """

    def __init__(
        self,
        credential: Union[TokenCredential, AsyncTokenCredential],
        scopes: Sequence[str] = GRAPH_DEFAULT_SCOPES,
    ):
        self.credential = credential
        self.scopes = tuple(scopes)

    async def get_token(self) -> Optional[str]:
        if inspect.iscoroutinefunction(self.credential.get_token):
            result = await self.credential.get_token(*self.scopes)
        else:
            # Sync credentials do blocking network I/O
            result = await asyncio.to_thread(self.credential.get_token, *self.scopes)
        token: Optional[AccessToken] = result
        return token.token if token else None


class AuthServiceCredentialSource:
    """CredentialSource backed by the internal Auth service's token vending endpoint."""

    def __init__(
        self,
        credential_id: str,
        settings: GraphSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            credential_id: UUID of the credential in auth.credentials table
            settings: Settings with auth_service_url and service_secret
            transport: Optional httpx transport (tests)
        """
        self.credential_id = credential_id
        self.settings = settings
        self.transport = transport

    async def get_token(self) -> Optional[str]:
        token_data = await get_credential_token(
            self.credential_id,
            settings=self.settings,
            transport=self.transport,
        )
        return token_data.get("access_token")
