import threading


class RecordCounter:
    """
    프로세스 내에서 처리한 레코드 수를 세는 카운터입니다.
    여러 ShardConsumer가 서로 다른 스레드에서 공유해도 안전합니다.

    Attributes:
        value (int): 지금까지 증가된 횟수
    """

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def increment(self) -> int:
        """값을 1 증가시키고 증가된 값(순번)을 반환합니다."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
