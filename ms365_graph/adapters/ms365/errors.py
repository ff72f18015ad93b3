"""Exceptions raised by the MS365 Graph adapter."""


class MS365AdapterError(Exception):
    """Base exception for MS365 adapter errors."""
    pass


class NoTokenError(MS365AdapterError):
    """Raised when no access token can be resolved for a call."""

    def __init__(self, message: str = "No access token available"):
        super().__init__(message)


class RefreshConfigError(MS365AdapterError):
    """Raised when a refresh is attempted without a configured client secret."""

    def __init__(self, message: str = "MS365_MCP_CLIENT_SECRET not configured"):
        super().__init__(message)


class TokenRefreshError(MS365AdapterError):
    """Raised when the token endpoint does not hand back a usable access token."""
    pass


class ApiError(MS365AdapterError):
    """
    Non-2xx response from Microsoft Graph.

    Attributes:
        status: HTTP status code
        status_text: HTTP reason phrase
        body: Response body text
    """

    def __init__(self, status: int, status_text: str, body: str):
        self.status = status
        self.status_text = status_text
        self.body = body
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Microsoft Graph API error: {self.status} {self.status_text} - {self.body}"


class ScopePermissionError(ApiError):
    """403 caused by a missing scope; the tool has to run in organization mode."""

    def _build_message(self) -> str:
        return (
            f"Microsoft Graph API scope error: {self.status} {self.status_text} - {self.body}. "
            "This tool requires organization mode. Please restart with --org-mode flag."
        )
