"""Exception taxonomy shared by the sync engine and the insight service."""

from __future__ import annotations


class ThoughtWeaverError(Exception):
    """Base class for application errors."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.details = details if details is not None else message

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.public_message}
        if self.status_code >= 500 and self.details:
            payload["details"] = self.details
        return payload


class MissingFieldsError(ThoughtWeaverError):
    """A required request field was absent or empty."""

    status_code = 400

    def __init__(self, fields: list[str], required: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = fields
        self.public_message = f"Missing required fields: {', '.join(required)}"


class RateLimitedError(ThoughtWeaverError):
    """The caller must wait before issuing another insight request."""

    status_code = 429
    public_message = "Too many requests. Please wait before trying again."

    def __init__(self, user_id: str, retry_after_ms: int) -> None:
        super().__init__(f"User {user_id} rate limited for another {retry_after_ms} ms")
        self.user_id = user_id
        self.retry_after_ms = retry_after_ms


class UpstreamServiceError(ThoughtWeaverError):
    """An external service (embedding, vector store, generation) failed."""


class EmbeddingServiceError(UpstreamServiceError):
    pass


class VectorStoreError(UpstreamServiceError):
    public_message = "Failed to search for similar documents"


class GenerationServiceError(UpstreamServiceError):
    public_message = "Failed to generate insights"


class PersistenceError(ThoughtWeaverError):
    """Writing to the content store failed."""


__all__ = [
    "ThoughtWeaverError",
    "MissingFieldsError",
    "RateLimitedError",
    "UpstreamServiceError",
    "EmbeddingServiceError",
    "VectorStoreError",
    "GenerationServiceError",
    "PersistenceError",
]
