"""Exception types raised by the answer pipeline."""


class AnswerEngineError(Exception):
    """Base class for all answer engine errors."""


class FetchError(AnswerEngineError):
    """A single source could not be fetched."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class FetchTimeoutError(FetchError):
    """The fetch deadline expired before the body was read."""

    def __init__(self, url: str, timeout_ms: int):
        super().__init__(url, f"timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class UnsafeURLError(FetchError):
    """The URL (or a redirect target) points somewhere we refuse to fetch."""


class GenerationError(AnswerEngineError):
    """The generation backend failed or signalled an error."""


class StreamInterruptedError(AnswerEngineError):
    """The answer stream broke after output had already been sent."""


class RateLimitExceeded(AnswerEngineError):
    """Admission control rejected the request."""

    def __init__(self, retry_after: float):
        super().__init__(f"Rate limit exceeded, retry after {retry_after:.1f}s")
        self.retry_after = retry_after
