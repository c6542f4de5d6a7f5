from typing import Optional


class RetrievalError(Exception):
    """Base exception for every failure surfaced by a retrieval."""
    http_status = 500
    client_error = False


class SiteNotSupportedError(RetrievalError):
    """Raised when a story URL does not belong to any supported site."""
    http_status = 404
    client_error = True


class UnsupportedOperationError(SiteNotSupportedError):
    """The site is supported but does not offer the requested use-case."""
    http_status = 400


class InvalidRangeError(RetrievalError, ValueError):
    """Custom exception for malformed chapter ranges."""
    http_status = 400
    client_error = True


class _SourcePageError(RetrievalError):
    def __init__(self, message: str, url: Optional[str] = None, chapter_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.chapter_index = chapter_index

    def with_chapter_index(self, chapter_index: int):
        """Tags the error with the chapter it belongs to, unless already tagged."""
        if self.chapter_index is None:
            self.chapter_index = chapter_index
        return self

    def __str__(self) -> str:
        details = []
        if self.chapter_index is not None:
            details.append(f"chapter {self.chapter_index}")
        if self.url:
            details.append(self.url)
        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class FetchError(_SourcePageError):
    """Network, timeout or HTTP status failure while reaching a source page."""
    http_status = 502

    def __init__(self, message: str, url: Optional[str] = None, chapter_index: Optional[int] = None,
                 status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message, url=url, chapter_index=chapter_index)
        self.status_code = status_code
        self.reason = reason


class ParseError(_SourcePageError):
    """The page was fetched but its structure was not recognized."""
    http_status = 500
