"""
Graph proxy routes.

Exposes the Graph adapter over HTTP for tool-calling clients. The response
is always the adapter envelope; errors are reported through its isError
flag rather than the HTTP status.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..adapters.ms365 import GraphClient


router = APIRouter(prefix="/api/graph", tags=["MS365 Graph"])


class GraphRequestBody(BaseModel):
    """Request to forward to Microsoft Graph"""
    path: str = Field(
        ...,
        description="Graph path relative to the API root",
        pattern=r"^/",
        examples=["/me", "/me/mailFolders/inbox/messages?$top=10"]
    )
    options: Optional[Dict[str, Any]] = Field(
        default=None,
        description="method, headers, body, rawResponse, includeHeaders, accessToken, refreshToken"
    )


class SetTokensRequest(BaseModel):
    """OAuth tokens to store in the adapter"""
    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None


def _client(request: Request) -> GraphClient:
    return request.app.state.graph_client


@router.post("/request")
async def graph_request(body: GraphRequestBody, request: Request) -> Dict[str, Any]:
    """
    Forward a request to Microsoft Graph.

    Example:
        POST /api/graph/request
        {"path": "/me/messages", "options": {"includeHeaders": true}}
    """
    return await _client(request).graph_request(body.path, body.options)


@router.post("/tokens")
async def set_tokens(body: SetTokensRequest, request: Request) -> Dict[str, Any]:
    """Replace the adapter's stored access/refresh token pair."""
    client = _client(request)
    client.set_oauth_tokens(body.access_token, body.refresh_token)
    pair = client.store.snapshot()
    return {
        "status": "ok",
        "has_refresh_token": bool(pair and pair.refresh_token),
    }
