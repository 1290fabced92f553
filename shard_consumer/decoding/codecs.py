"""Codec candidates: magic-byte detection plus a decoder per compression format."""

import gzip
import lzma
from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import lz4.frame
import zstandard


def find_first(buffer: bytes, magic: bytes) -> Optional[int]:
    """Return the offset of the first occurrence of ``magic`` in ``buffer``."""
    if not magic:
        return None
    offset = buffer.find(magic)
    return offset if offset >= 0 else None


# 0x184D2A50 - 0x184D2A5F, little endian
_ZSTD_SKIPPABLE_MAGIC_TAIL = b"\x2a\x4d\x18"


def _is_skippable_frame(data: bytes) -> bool:
    return (
        len(data) >= 4
        and data[1:4] == _ZSTD_SKIPPABLE_MAGIC_TAIL
        and data[0] & 0xF0 == 0x50
    )


def _skip_frame(data: bytes) -> bytes:
    if len(data) < 8:
        raise ValueError("zstd skippable frame header is truncated")
    size = int.from_bytes(data[4:8], "little")
    if len(data) < 8 + size:
        raise ValueError("zstd skippable frame is truncated")
    return data[8 + size :]


class BaseCodec(ABC):
    """
    Detector/decoder pair for one compression format.
    압축 포맷 하나에 대한 감지기/디코더 쌍입니다.

    Attributes:
        name (str): 코덱 이름 (RecoveredPayload.codec 값으로 사용)
        magics (tuple[bytes, ...]): 스트림 시작을 나타내는 매직 바이트 시퀀스들
    """

    name: ClassVar[str]
    magics: ClassVar[tuple[bytes, ...]]

    def detect(self, buffer: bytes) -> Optional[int]:
        """
        버퍼를 앞에서부터 스캔하여 매직 바이트가 처음 나타나는 위치를 반환합니다.
        매직이 여러 개면 가장 앞선 위치를 사용합니다.

        Args:
            buffer (bytes): 스캔할 버퍼

        Returns:
            Optional[int]: 발견된 오프셋, 없으면 None
        """
        found = [find_first(buffer, magic) for magic in self.magics]
        offsets = [offset for offset in found if offset is not None]
        return min(offsets) if offsets else None

    @abstractmethod
    def decode(self, data: bytes) -> bytes:
        """
        매직 바이트로 시작하는 데이터를 압축 해제합니다.

        Args:
            data (bytes): 압축된 스트림 (트레일러 제외)

        Returns:
            bytes: 압축 해제된 바이트
        Raises:
            Exception: 손상되었거나 잘린 스트림, 뒤에 남은 바이트가 있는 경우
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ZstdCodec(BaseCodec):
    name = "zstd"
    magics = (b"\x28\xb5\x2f\xfd",)

    def decode(self, data: bytes) -> bytes:
        """Decodes every concatenated frame; skippable frames are dropped."""
        chunks: list[bytes] = []
        remaining = data
        while remaining:
            if _is_skippable_frame(remaining):
                remaining = _skip_frame(remaining)
                continue
            # decompressobj copes with frames that omit the content size,
            # and raises on leftover bytes that are not a frame
            decompressor = zstandard.ZstdDecompressor().decompressobj()
            chunks.append(decompressor.decompress(remaining))
            if not decompressor.eof:
                raise ValueError("zstd frame is truncated")
            remaining = decompressor.unused_data
        return b"".join(chunks)


class GzipCodec(BaseCodec):
    name = "gzip"
    magics = (b"\x1f\x8b\x08",)

    def decode(self, data: bytes) -> bytes:
        return gzip.decompress(data)


class LzmaCodec(BaseCodec):
    name = "lzma"
    # xz container, then the legacy .lzma header (lc=3 lp=0 pb=2 properties byte)
    magics = (b"\xfd7zXZ\x00", b"\x5d\x00\x00")

    def decode(self, data: bytes) -> bytes:
        return lzma.decompress(data, format=lzma.FORMAT_AUTO)


class Lz4Codec(BaseCodec):
    name = "lz4"
    magics = (b"\x04\x22\x4d\x18",)

    def decode(self, data: bytes) -> bytes:
        result, bytes_read = lz4.frame.decompress(data, return_bytes_read=True)
        if bytes_read != len(data):
            raise ValueError(
                "%d bytes of trailing data after lz4 frame" % (len(data) - bytes_read)
            )
        return result
