from abc import ABC, abstractmethod

from shard_consumer.dto import FetchResult, StartPosition


class BaseShardFetcher(ABC):
    """
    Fetch capability for a single shard.
    단일 샤드에 대한 조회 기능의 추상 클래스입니다.

    구현체는 재시도 가능한 실패에 FetchTransientError를,
    그 외의 실패에 FetchFatalError를 발생시켜야 합니다.
    """

    @abstractmethod
    def acquire_cursor(self, start_position: StartPosition) -> str:
        """
        Acquires the initial cursor for the given start position.
        시작 위치에 대한 최초 커서를 획득합니다.

        Args:
            start_position (StartPosition): earliest 또는 latest

        Returns:
            str: 불투명한 커서 토큰
        """

    @abstractmethod
    def fetch_next_batch(self, cursor: str, max_records: int) -> FetchResult:
        """
        Fetches the next batch of records starting at the cursor.
        커서 위치부터 다음 레코드 배치를 조회합니다.

        Args:
            cursor (str): 현재 커서
            max_records (int): 한 번에 조회할 최대 레코드 수

        Returns:
            FetchResult: 레코드 목록과 다음 커서
        """

    def describe(self) -> str:
        """로그와 메트릭 레이블에 사용할 샤드 식별자를 반환합니다."""
        return type(self).__name__
