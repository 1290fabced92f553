"""Error taxonomy for payload recovery and shard consumption."""

from typing import Optional


class ShardConsumerError(Exception):
    """Base class for every error raised by this package."""


class DecodeCandidateFailed(ShardConsumerError):
    """A codec candidate matched its magic bytes but could not decode the window.

    Recoverable: the decoder moves on to the next candidate. Never escapes
    PayloadDecoder.recover.
    """

    def __init__(self, codec: str, offset: int, reason: str) -> None:
        super().__init__(f"{codec} decode at offset {offset} failed: {reason}")
        self.codec = codec
        self.offset = offset
        self.reason = reason


class NoPayloadDetected(ShardConsumerError):
    """Neither a codec magic sequence nor an opening brace was found.

    Soft failure: reported through the "unknown" label, never raised out of
    the decoder.
    """


class FetchTransientError(ShardConsumerError):
    """Retriable fetch failure (throttling, transient network problems)."""


class FetchFatalError(ShardConsumerError):
    """Unrecoverable fetch failure. Stops the consumer."""

    def __init__(self, message: str, attempts: Optional[int] = None) -> None:
        super().__init__(message)
        self.attempts = attempts


class CursorAcquisitionFailed(ShardConsumerError):
    """The starting cursor could not be acquired. Raised at start-up."""
