from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# --- Codec labels ---
UNCOMPRESSED = "uncompressed"
UNKNOWN = "unknown"

# Default detection order of the codec chain
DEFAULT_CODEC_ORDER = ("zstd", "gzip", "lzma", "lz4")


class StartPosition(Enum):
    """
    샤드 이터레이터를 획득할 시작 위치입니다.

    Attributes:
        EARLIEST (str): 보관 중인 가장 오래된 레코드부터 (TRIM_HORIZON)
        LATEST (str): 이터레이터 획득 이후 도착하는 레코드부터
    """

    EARLIEST = "earliest"
    LATEST = "latest"


class ConsumerState(Enum):
    """
    ShardConsumer의 상태 머신 상태입니다.

    Attributes:
        ACQUIRING (str): 커서 획득 중 (초기 상태)
        POLLING (str): 배치 조회 및 처리 중
        DEGRADED (str): 일시적인 조회 실패로 백오프 후 재시도 중
        STOPPED (str): 정상 종료
        FAILED (str): 복구 불가능한 오류로 종료
    """

    ACQUIRING = "acquiring"
    POLLING = "polling"
    DEGRADED = "degraded"
    STOPPED = "stopped"
    FAILED = "failed"


# --- Log records ---
@dataclass(frozen=True)
class RawRecord:
    """
    로그에서 조회한 단일 레코드입니다. 생성 이후 변경되지 않습니다.

    Attributes:
        data (bytes): 레코드의 원본 바이트
        sequence_number (str): 샤드 내 레코드 위치
        partition_key (Optional[str]): 파티션 키
        arrival_timestamp (Optional[float]): 로그 서비스 도착 시각 (epoch seconds)
    """

    data: bytes
    sequence_number: str
    partition_key: Optional[str] = None
    arrival_timestamp: Optional[float] = None


@dataclass(frozen=True)
class FetchResult:
    """
    FetchNextBatch 호출 결과입니다.

    Attributes:
        records (list[RawRecord]): 도착 순서대로 정렬된 레코드 목록 (빈 목록 가능)
        next_cursor (Optional[str]): 다음 조회에 사용할 커서. None이면 샤드가 닫힌 것입니다.
        millis_behind_latest (Optional[int]): 샤드 끝으로부터의 지연 (ms)
    """

    records: list[RawRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None
    millis_behind_latest: Optional[int] = None


# --- Decoding ---
@dataclass(frozen=True)
class RecoveredPayload:
    """
    레코드 하나에서 복원된 페이로드입니다.

    Attributes:
        payload (bytes): 복원된 바이트 (복원 실패 시 빈 바이트)
        codec (str): 성공한 코덱 이름, "uncompressed" 또는 "unknown"
        offset (Optional[int]): 버퍼 내 페이로드 시작 위치
    """

    payload: bytes
    codec: str
    offset: Optional[int] = None

    @property
    def is_recovered(self) -> bool:
        return self.codec != UNKNOWN
