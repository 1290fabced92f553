from collections.abc import Iterable

from shard_consumer.decoding.codecs import (
    BaseCodec,
    GzipCodec,
    Lz4Codec,
    LzmaCodec,
    ZstdCodec,
)

_CODECS: dict[str, type[BaseCodec]] = {
    codec.name: codec for codec in (ZstdCodec, GzipCodec, LzmaCodec, Lz4Codec)
}


def available_codecs() -> tuple[str, ...]:
    return tuple(_CODECS)


def create_codec_chain(codec_order: Iterable[str]) -> tuple[BaseCodec, ...]:
    """
    설정된 코덱 이름 순서대로 코덱 후보 체인을 생성합니다.

    Args:
        codec_order (Iterable[str]): 감지 우선순위 순서의 코덱 이름들

    Returns:
        tuple[BaseCodec, ...]: 생성된 코덱 후보들 (중복 이름은 처음 위치만 유지)
    Raises:
        ValueError: 알 수 없는 코덱 이름이 지정된 경우 발생
    """
    chain: list[BaseCodec] = []
    seen: set[str] = set()
    for name in codec_order:
        key = name.strip().lower()
        codec_cls = _CODECS.get(key)
        if codec_cls is None:
            raise ValueError(f"Unknown codec: {name}")
        if key in seen:
            continue
        seen.add(key)
        chain.append(codec_cls())
    return tuple(chain)
