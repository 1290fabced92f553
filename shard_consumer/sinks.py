import logging
from typing import Optional

from shard_consumer.dto import RecoveredPayload
from shard_consumer.logger import LogManager


class LoggingSink:
    """Logs every recovered payload, one line per record."""

    def __init__(
        self, logger: Optional[logging.Logger] = None, max_chars: int = 0
    ) -> None:
        self._logger = logger or LogManager.get_logger(__name__)
        # 0 keeps the whole payload
        self._max_chars = max_chars

    def __call__(self, recovered: RecoveredPayload, sequence_no: int) -> None:
        if not recovered.is_recovered:
            self._logger.warning("message #%d: no payload detected", sequence_no)
            return

        text = recovered.payload.decode("utf-8", errors="replace")
        if self._max_chars and len(text) > self._max_chars:
            text = text[: self._max_chars] + "..."
        self._logger.info(
            "message #%d codec=%s offset=%s len=%d payload=%s",
            sequence_no,
            recovered.codec,
            recovered.offset,
            len(recovered.payload),
            text,
        )
