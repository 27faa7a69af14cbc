from typing import Optional


class SearchError(Exception):
    """Base class for everything the search layer raises on purpose."""


class InvalidQuery(SearchError):
    def __init__(self, message: str = "Search query must not be empty."):
        super().__init__(message)


class UpstreamError(SearchError):
    """An upstream answered, but not with a success status."""

    def __init__(self, status: int, body: str = "", provider: Optional[str] = None):
        self.status = status
        self.body = body
        self.provider = provider
        label = provider or "upstream"
        super().__init__(f"{label} responded with status {status}")


class NetworkError(SearchError):
    """Transport-level failure: DNS, refused connection, timeout, abort."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class MisconfiguredCredential(SearchError):
    def __init__(self, name: str = "BRAVE_API_KEY"):
        self.name = name
        super().__init__(f"{name} is not configured.")
