# -*- coding: utf-8 -*-
"""PayloadDecoder - recovers a record payload through an ordered codec chain."""

from collections.abc import Sequence
from typing import Optional

from ..config import DecoderConfig
from ..dto import UNCOMPRESSED, UNKNOWN, RecoveredPayload
from ..errors import DecodeCandidateFailed, NoPayloadDetected
from ..logger import LogManager
from .codec_factory import create_codec_chain
from .codecs import BaseCodec, find_first

logger = LogManager.get_logger(__name__)

_JSON_OBJECT_OPEN = b"{"


class PayloadDecoder:
    """
    포맷을 모르는 버퍼에서 원본 페이로드를 복원합니다.

    버퍼 구조: [알 수 없는 접두부][압축 또는 원본 페이로드][trailer_size 바이트 트레일러]

    1. 코덱 후보를 순서대로 시도합니다. 매직 바이트가 처음 나타나는 위치부터
       트레일러 직전까지를 디코딩하며, 실패하면 다음 후보로 넘어갑니다.
    2. 모든 후보가 실패하면 첫 '{' 위치부터를 비압축 페이로드로 간주합니다.
    3. 둘 다 없으면 빈 페이로드와 "unknown" 레이블을 반환합니다.

    인스턴스는 변경 가능한 상태를 갖지 않으므로 여러 스레드에서 동시에 사용할 수 있습니다.
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        codecs: Optional[Sequence[BaseCodec]] = None,
    ) -> None:
        self._config = config or DecoderConfig()
        self._trailer_size = self._config.trailer_size
        if codecs is None:
            codecs = create_codec_chain(self._config.codec_order)
        self._codecs: tuple[BaseCodec, ...] = tuple(codecs)

    @property
    def trailer_size(self) -> int:
        return self._trailer_size

    @property
    def codec_names(self) -> tuple[str, ...]:
        return tuple(codec.name for codec in self._codecs)

    # ------------------------------------------------------------------
    def recover(self, buffer: bytes) -> RecoveredPayload:
        """Return the best-effort payload of ``buffer``. Never raises."""
        data = bytes(buffer)
        end = max(len(data) - self._trailer_size, 0)

        for codec in self._codecs:
            try:
                return self._try_codec(codec, data, end)
            except DecodeCandidateFailed as exc:
                logger.debug("%s", exc)

        try:
            return self._try_raw_text(data, end)
        except NoPayloadDetected as exc:
            logger.warning("%s", exc)
            return RecoveredPayload(payload=b"", codec=UNKNOWN)

    def _try_codec(
        self, codec: BaseCodec, data: bytes, end: int
    ) -> RecoveredPayload:
        try:
            start = codec.detect(data)
        except Exception as exc:
            raise DecodeCandidateFailed(
                codec.name, -1, f"detection error: {exc}"
            ) from exc
        if start is None:
            raise DecodeCandidateFailed(codec.name, -1, "magic bytes not found")
        if start >= end:
            raise DecodeCandidateFailed(
                codec.name, start, "magic bytes inside the trailer"
            )

        try:
            payload = codec.decode(data[start:end])
        except Exception as exc:
            raise DecodeCandidateFailed(codec.name, start, str(exc)) from exc

        logger.debug("%s payload found at offset %d", codec.name, start)
        return RecoveredPayload(payload=payload, codec=codec.name, offset=start)

    def _try_raw_text(self, data: bytes, end: int) -> RecoveredPayload:
        # last resort: binary data may contain 0x7B by accident
        start = find_first(data, _JSON_OBJECT_OPEN)
        if start is None:
            raise NoPayloadDetected(
                "No codec magic or '{' in %d byte buffer" % len(data)
            )
        logger.debug("No codec matched, raw payload starts at %d", start)
        return RecoveredPayload(
            payload=data[start:end], codec=UNCOMPRESSED, offset=start
        )
