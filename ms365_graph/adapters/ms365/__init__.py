"""
Microsoft 365 adapter package.

Provides the authenticated Graph request adapter:
- graph: GraphClient (token resolution, refresh-and-retry, envelopes)
- formatting: envelope and OData stripping helpers
- _auth: credential sources, token store and refresh-token exchange
- errors: adapter exception taxonomy
"""

from ._auth import (
    AuthServiceCredentialSource,
    AzureCredentialSource,
    CredentialSource,
    CredentialStore,
    MicrosoftTokenRefresher,
    TokenRefresher,
)
from .errors import (
    ApiError,
    MS365AdapterError,
    NoTokenError,
    RefreshConfigError,
    ScopePermissionError,
    TokenRefreshError,
)
from .formatting import format_error_response, format_json_response, strip_odata
from .graph import GraphClient, normalize_body
from .models import GraphRequestOptions, TokenPair

__all__ = [
    "ApiError",
    "AuthServiceCredentialSource",
    "AzureCredentialSource",
    "CredentialSource",
    "CredentialStore",
    "GraphClient",
    "GraphRequestOptions",
    "MicrosoftTokenRefresher",
    "MS365AdapterError",
    "NoTokenError",
    "RefreshConfigError",
    "ScopePermissionError",
    "TokenPair",
    "TokenRefreshError",
    "TokenRefresher",
    "format_error_response",
    "format_json_response",
    "normalize_body",
    "strip_odata",
]
