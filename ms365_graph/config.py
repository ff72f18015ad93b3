"""
Runtime configuration for the Graph gateway.

All settings come from environment variables and are read once into a
GraphSettings instance at startup. Nothing below the config layer reads
os.environ directly.
"""
import os
from typing import Optional, List, Mapping

from pydantic import BaseModel, Field, field_validator


DEFAULT_TENANT_ID = "common"
DEFAULT_CLIENT_ID = "084a3e9f-a9f4-43f7-89f9-d229cf97853e"
DEFAULT_API_ROOT = "https://graph.microsoft.com/v1.0"
DEFAULT_AUTHORITY = "https://login.microsoftonline.com"


class GraphSettings(BaseModel):
    """Validated settings for the Graph client and its token refresher."""
    tenant_id: str = Field(default=DEFAULT_TENANT_ID, min_length=1)
    client_id: str = Field(default=DEFAULT_CLIENT_ID, min_length=1)
    client_secret: Optional[str] = Field(
        default=None,
        description="Only required when an expired token has to be refreshed"
    )
    api_root: str = DEFAULT_API_ROOT
    authority: str = DEFAULT_AUTHORITY
    scopes: List[str] = Field(default_factory=list)
    timeout: float = Field(default=30.0, gt=0)
    auth_service_url: str = "http://auth:8000"
    service_secret: Optional[str] = None
    credential_id: Optional[str] = None

    @field_validator("api_root", "authority", "auth_service_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def token_url(self, tenant_id: Optional[str] = None) -> str:
        """v2.0 token endpoint for the given tenant (defaults to the configured one)."""
        return f"{self.authority}/{tenant_id or self.tenant_id}/oauth2/v2.0/token"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GraphSettings":
        """
        Build settings from environment variables.

        Empty values are treated as unset so the defaults apply.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated GraphSettings

        Raises:
            pydantic.ValidationError: If a value is malformed
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            value = env.get(name)
            return value if value else None

        values = {
            "tenant_id": _get("MS365_MCP_TENANT_ID"),
            "client_id": _get("MS365_MCP_CLIENT_ID"),
            "client_secret": _get("MS365_MCP_CLIENT_SECRET"),
            "api_root": _get("MS365_GRAPH_API_ROOT"),
            "authority": _get("MS365_AUTHORITY_URL"),
            "timeout": _get("MS365_HTTP_TIMEOUT"),
            "auth_service_url": _get("AUTH_SERVICE_URL"),
            "service_secret": _get("SERVICE_SECRET"),
            "credential_id": _get("MS365_CREDENTIAL_ID"),
        }
        scopes = _get("MS365_MCP_SCOPES")
        if scopes:
            values["scopes"] = scopes.split()

        return cls(**{k: v for k, v in values.items() if v is not None})
