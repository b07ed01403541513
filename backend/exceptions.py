class FlashcardError(Exception):
    """Base class for errors that map onto a JSON error response."""

    status_code = 500
    message = "Failed to generate flashcards"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail

    def to_response(self) -> dict:
        return {"error": self.message, "details": self.detail}


class ValidationError(FlashcardError):
    """The inbound request body is malformed."""

    status_code = 400

    def to_response(self) -> dict:
        return {"error": self.detail or "Invalid request"}


class RateLimitError(FlashcardError):
    status_code = 429
    message = "Too many requests, please try again later."

    def __init__(self, retry_after: int = 0):
        super().__init__(self.message)
        self.retry_after = retry_after

    def to_response(self) -> dict:
        return {"error": self.message}


class ConfigurationError(FlashcardError):
    """A provider was selected whose credential or name is not configured."""


class UpstreamError(FlashcardError):
    """The model provider call failed."""


class MalformedLineError(ValueError):
    """A stream line looked like a JSON object but did not parse.

    Never reaches the client; the relay logs it and moves on.
    """

    def __init__(self, line: str, reason: str):
        super().__init__(reason)
        self.line = line
        self.reason = reason
