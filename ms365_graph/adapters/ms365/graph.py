"""
MS365 Graph request adapter.

Forwards a request to Microsoft Graph with a bearer token, refreshes the
token once on a 401 and retries once, then reshapes the result into the
tool-protocol envelope (see formatting.py).

Example:
    async with GraphClient(GraphSettings.from_env()) as client:
        client.set_oauth_tokens(access_token, refresh_token)
        envelope = await client.graph_request("/me/messages", {"includeHeaders": True})
"""

import json
import logging
from typing import Optional, Mapping, Any, Tuple, Union, Dict

import httpx

from ...config import GraphSettings
from ._auth import CredentialSource, CredentialStore, TokenRefresher, MicrosoftTokenRefresher
from .errors import ApiError, NoTokenError, RefreshConfigError, ScopePermissionError, TokenRefreshError
from .formatting import format_error_response, format_json_response, to_json
from .models import GraphRequestOptions


log = logging.getLogger("ms365_graph.graph")

NO_ETAG = "no-etag-found"

OptionsLike = Union[GraphRequestOptions, Mapping[str, Any], None]


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def normalize_body(
    text: str,
    headers: Optional[Mapping[str, str]] = None,
    include_headers: bool = False,
) -> Any:
    """
    Turn a Graph response body into a Python value.

    Empty bodies become {"message": "OK!"}; bodies that are not JSON become
    {"message": "OK!", "rawResponse": text}. With include_headers, dict
    results also get an _etag taken from the ETag header.
    """
    if text == "":
        result: Any = {"message": "OK!"}
    else:
        try:
            result = json.loads(text, parse_constant=_reject_constant)
        except ValueError:
            result = {"message": "OK!", "rawResponse": text}

    if include_headers and isinstance(result, dict):
        etag = httpx.Headers(headers or {}).get("etag")
        result = {**result, "_etag": etag or NO_ETAG}

    return result


class GraphClient:
    """
    Authenticated Microsoft Graph client returning response envelopes.

    Token precedence per call: options.access_token, then the stored token,
    then the credential source.
    """

    def __init__(
        self,
        settings: GraphSettings,
        credential_source: Optional[CredentialSource] = None,
        token_refresher: Optional[TokenRefresher] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        store: Optional[CredentialStore] = None,
    ):
        self.settings = settings
        self.credential_source = credential_source
        self.token_refresher = token_refresher or MicrosoftTokenRefresher(settings)
        self.store = store or CredentialStore()
        self._http = httpx.AsyncClient(timeout=settings.timeout, transport=transport)

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_oauth_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        self.store.set_tokens(access_token, refresh_token)

    async def graph_request(self, path: str, options: OptionsLike = None) -> Dict[str, Any]:
        """
        Call Graph and always return an envelope.

        Failures of any kind are logged and returned as
        {"content": [{"type": "text", "text": '{"error": ...}'}], "isError": True}.
        """
        try:
            opts = _coerce_options(options)
            log.info("Calling %s with options: %s", path, to_json(opts.redacted()))
            result = await self.make_request(path, opts)
            return format_json_response(result, opts.raw_response)
        except Exception as e:
            log.error("Error in Graph API request to %s: %s", path, e)
            return format_error_response(str(e))

    async def make_request(self, path: str, options: OptionsLike = None) -> Any:
        """
        Perform the request with one refresh-and-retry on 401.

        Returns:
            Normalized body (see normalize_body)

        Raises:
            NoTokenError: If no access token can be resolved
            RefreshConfigError: If a refresh is needed but no client secret is configured
            TokenRefreshError: If the token endpoint rejects the refresh
            ScopePermissionError: On a 403 mentioning scope/permission
            ApiError: On any other non-2xx response
            httpx.TransportError: On network failures (not retried)
        """
        opts = _coerce_options(options)
        access_token, refresh_token = await self._resolve_tokens(opts)

        generation = self.store.generation
        # Only a call running on the stored pair may reuse a token another call refreshed
        shares_store = refresh_token is not None and refresh_token == self.store.refresh_token
        response = await self._perform_request(path, access_token, opts)

        if response.status_code == 401 and refresh_token:
            access_token = await self._refresh(refresh_token, generation if shares_store else None)
            response = await self._perform_request(path, access_token, opts)

        self._raise_for_status(response)
        return normalize_body(response.text, response.headers, opts.include_headers)

    async def _resolve_tokens(self, options: GraphRequestOptions) -> Tuple[str, Optional[str]]:
        access_token = options.access_token or self.store.access_token
        if not access_token and self.credential_source is not None:
            access_token = await self.credential_source.get_token()
        if not access_token:
            raise NoTokenError()

        refresh_token = options.refresh_token or self.store.refresh_token
        return access_token, refresh_token

    async def _refresh(self, refresh_token: str, seen_generation: Optional[int]) -> str:
        async with self.store.lock:
            # Another call refreshed while this one was waiting on the lock
            if (
                seen_generation is not None
                and self.store.generation != seen_generation
                and self.store.access_token
            ):
                log.info("Reusing access token refreshed by a concurrent request")
                return self.store.access_token

            if not self.settings.client_secret:
                raise RefreshConfigError()

            log.info("Access token rejected with 401, refreshing")
            token_data = await self.token_refresher.refresh(
                refresh_token,
                self.settings.client_id,
                self.settings.client_secret,
                self.settings.tenant_id,
            )
            new_access = token_data.get("access_token")
            if not new_access:
                raise TokenRefreshError("Failed to refresh access token")

            self.store.update(new_access, token_data.get("refresh_token"))
            return new_access

    async def _perform_request(
        self, path: str, access_token: str, options: GraphRequestOptions
    ) -> httpx.Response:
        if not path.startswith("/"):
            path = f"/{path}"
        url = f"{self.settings.api_root}{path}"

        headers = httpx.Headers({
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        })
        # Caller headers win, whatever their casing
        headers.update(options.headers)

        return await self._http.request(
            options.method,
            url,
            headers=headers,
            content=options.body,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return

        body = response.text
        if response.status_code == 403 and ("scope" in body or "permission" in body):
            raise ScopePermissionError(response.status_code, response.reason_phrase, body)
        raise ApiError(response.status_code, response.reason_phrase, body)


def _coerce_options(options: OptionsLike) -> GraphRequestOptions:
    if options is None:
        return GraphRequestOptions()
    if isinstance(options, GraphRequestOptions):
        return options
    return GraphRequestOptions.model_validate(dict(options))
