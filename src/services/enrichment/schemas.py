from enum import Enum

from pydantic import BaseModel


class SkipReason(str, Enum):
    """Why a candidate page did not contribute any email."""

    TIMEOUT = "timeout"
    REQUEST_ERROR = "request_error"
    HTTP_ERROR = "http_error"
    EMPTY_BODY = "empty_body"
    INVALID_URL = "invalid_url"
    NO_EMAILS = "no_emails"


class FetchResult(BaseModel):
    """Outcome of fetching one URL: a body, or the reason there is none."""

    url: str
    body: str | None = None
    status_code: int | None = None
    skip_reason: SkipReason | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.body is not None


class PageAttempt(BaseModel):
    """One URL the website scraper tried, kept for diagnostics."""

    url: str
    emails: list[str] = []
    skip_reason: SkipReason | None = None
    error: str | None = None
