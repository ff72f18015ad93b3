"""
Request option and credential models for the MS365 Graph adapter.

Callers may pass options with either snake_case or the camelCase keys used
by tool-calling clients (rawResponse, includeHeaders, ...). Unknown keys are
ignored.
"""
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GraphRequestOptions(BaseModel):
    """Per-call options for a Graph request. Immutable once built."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    headers: Dict[str, str] = Field(default_factory=dict)
    method: str = "GET"
    body: Optional[str] = None
    raw_response: bool = Field(default=False, alias="rawResponse")
    include_headers: bool = Field(default=False, alias="includeHeaders")
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    def redacted(self) -> Dict[str, Any]:
        """Options as a dict that is safe to log."""
        data = self.model_dump(by_alias=True)
        for key in ("accessToken", "refreshToken"):
            if data.get(key):
                data[key] = "***"
        return data


class TokenPair(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
