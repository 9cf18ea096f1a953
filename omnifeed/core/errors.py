from __future__ import annotations

import enum
from dataclasses import dataclass, field

class ErrorKind(str, enum.Enum):
    FETCH = "fetch"
    PARSE = "parse"

class QueryErrorKind(str, enum.Enum):
    MISSING_URL = "missing_url"
    INVALID_CURSOR = "invalid_cursor"
    FEED_UNAVAILABLE = "feed_unavailable"

@dataclass(frozen=True)
class FeedError:
    """Why one feed could not be normalized."""
    kind: ErrorKind
    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value} error for {self.url}: {self.message}"

@dataclass(frozen=True)
class QueryError:
    kind: QueryErrorKind
    message: str
    failed_urls: list[str] = field(default_factory=list)
    causes: list[FeedError] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message

@dataclass(frozen=True)
class StreamError:
    """A page fetch failure surfaced by a stream adapter."""
    message: str
    cursor: str | None = None
    cause: str | None = None

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

class OmnifeedError(Exception):
    pass

class StorageError(OmnifeedError):
    pass

class InvalidCursor(OmnifeedError, ValueError):
    pass
