"""
Error taxonomy shared by the crawler, repositories and services.

Routes translate these into HTTP status codes:
- InvalidRequestError        -> 400
- PaperNotFoundError         -> 404
- ProviderNotConfiguredError -> 503
- everything else            -> 500
"""

from typing import Optional


class ScrollXivError(Exception):
    """Base class for all ScrollXiv failures."""


class UpstreamError(ScrollXivError):
    """A remote service (arXiv, ar5iv, LLM provider) answered with a non-2xx status."""

    def __init__(self, service: str, status_code: Optional[int] = None, message: Optional[str] = None):
        self.service = service
        self.status_code = status_code
        if message is None:
            message = f"{service} API error: {status_code}"
        super().__init__(message)


class MalformedResponseError(ScrollXivError):
    """A remote payload (XML or JSON) could not be parsed."""


class ProviderNotConfiguredError(ScrollXivError):
    """The selected LLM provider has no credentials."""


class ProviderError(ScrollXivError):
    """The LLM provider call failed or its reply had the wrong shape."""


class PaperNotFoundError(ScrollXivError):
    def __init__(self, paper_id: str):
        self.paper_id = paper_id
        super().__init__(f"Paper not found: {paper_id}")


class InvalidRequestError(ScrollXivError):
    """A required field is missing or a value cannot be interpreted."""
