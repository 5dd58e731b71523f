"""Transport failures: a document could not be retrieved."""

from __future__ import annotations


class TransportError(Exception):
    """Raised when fetching a fiction page does not yield a usable document.

    ``code`` is ``HTTP_<status>`` for non-success responses, ``TIMEOUT`` or
    ``NETWORK`` otherwise. Server errors, rate limiting and network failures
    are retryable.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        url: str = "",
        status_code: int | None = None,
        status_text: str = "",
        retryable: bool = False,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.code = code
        self.url = url
        self.status_code = status_code
        self.status_text = status_text
        self.retryable = retryable

    @classmethod
    def from_status(cls, url: str, status_code: int, status_text: str = "") -> "TransportError":
        retryable = status_code >= 500 or status_code == 429
        return cls(
            f"HTTP {status_code}: {status_text}".rstrip(": "),
            code=f"HTTP_{status_code}",
            url=url,
            status_code=status_code,
            status_text=status_text,
            retryable=retryable,
        )

    @classmethod
    def from_exception(cls, url: str, exc: Exception, *, timeout: bool = False) -> "TransportError":
        code = "TIMEOUT" if timeout else "NETWORK"
        label = "Timeout" if timeout else "Network error"
        return cls(f"{label}: {exc}", code=code, url=url, retryable=True)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "url": self.url,
            "status_code": self.status_code,
            "status_text": self.status_text,
            "retryable": self.retryable,
            "attempts": self.attempts,
            "message": str(self),
        }
