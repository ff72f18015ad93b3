"""
Token vending client for the internal Auth service.

Backs AuthServiceCredentialSource: the Graph adapter asks the Auth service
for the current access token of a stored credential instead of holding the
OAuth login itself.
"""
import logging
from typing import Optional
from datetime import datetime

import httpx

from ..config import GraphSettings


log = logging.getLogger("ms365_graph.auth_client")

# credential_id -> last vended token payload
_token_cache: dict[str, dict] = {}

EXPIRY_BUFFER_SECONDS = 300
VENDING_PATH = "/auth/oauth/internal/credential-token"


class AuthClientError(Exception):
    """Auth service could not vend a token"""
    pass


def _cached(credential_id: str) -> Optional[dict]:
    cached = _token_cache.get(credential_id)
    if not cached:
        return None
    if cached.get("expires_at", 0) <= datetime.now().timestamp() + EXPIRY_BUFFER_SECONDS:
        return None
    return cached


def _error_for(response: httpx.Response, credential_id: str) -> AuthClientError:
    status = response.status_code
    if status == 404:
        return AuthClientError(f"Credential {credential_id} not found or not connected")
    if status == 401:
        return AuthClientError("Invalid SERVICE_SECRET")
    if status == 400:
        try:
            detail = response.json().get("detail", "Unknown error")
        except ValueError:
            detail = response.text or "Unknown error"
        return AuthClientError(f"Bad request: {detail}")
    return AuthClientError(f"Auth service error: {status} - {response.text}")


async def get_credential_token(
    credential_id: str,
    *,
    settings: GraphSettings,
    force_refresh: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """
    Vended token payload for a credential.

    The payload (access_token, expires_at, token_type) is reused until five
    minutes before expires_at unless force_refresh is set.

    Raises:
        AuthClientError: On a missing service secret, a non-2xx answer or a
            network failure
    """
    if not settings.service_secret:
        raise AuthClientError("SERVICE_SECRET not configured")

    if not force_refresh:
        cached = _cached(credential_id)
        if cached:
            return cached

    async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
        try:
            response = await client.post(
                f"{settings.auth_service_url}{VENDING_PATH}",
                headers={"X-Service-Token": settings.service_secret},
                json={"credential_id": credential_id},
            )
        except httpx.RequestError as e:
            raise AuthClientError(f"Failed to reach Auth service: {e}")

    if not response.is_success:
        raise _error_for(response, credential_id)

    token_data = response.json()
    _token_cache[credential_id] = token_data
    log.info("Vended token for credential %s", credential_id)
    return token_data


def clear_token_cache(credential_id: Optional[str] = None):
    """Drop one credential's cached token, or all of them."""
    if credential_id:
        _token_cache.pop(credential_id, None)
    else:
        _token_cache.clear()


def get_cache_stats() -> dict:
    return {
        "cached_credentials": len(_token_cache),
        "credential_ids": list(_token_cache.keys())
    }
