# -*- coding: utf-8 -*-
"""ShardConsumer - polls one shard and drives the PayloadDecoder."""

import asyncio
import inspect
import random
import time
from typing import Awaitable, Callable, Optional, Union

from ..config import ConsumerConfig
from ..decoding.payload_decoder import PayloadDecoder
from ..dto import ConsumerState, FetchResult, RawRecord, RecoveredPayload
from ..errors import CursorAcquisitionFailed, FetchFatalError, FetchTransientError
from ..fetch.base import BaseShardFetcher
from ..logger import LogManager
from ..metrics_exporter import PrometheusMetricsExporter
from .record_counter import RecordCounter

logger = LogManager.get_logger(__name__)

PayloadSink = Callable[[RecoveredPayload, int], Union[None, Awaitable[None]]]


class ShardConsumer:
    """Acquires a cursor, polls batches, recovers every record and hands it to a sink."""

    def __init__(
        self,
        config: Optional[ConsumerConfig] = None,
        decoder: Optional[PayloadDecoder] = None,
        counter: Optional[RecordCounter] = None,
        metrics_exporter: Optional[PrometheusMetricsExporter] = None,
    ) -> None:
        self._config = config or ConsumerConfig()
        self._decoder = decoder or PayloadDecoder()
        self._counter = counter or RecordCounter()
        self._metrics_exporter = metrics_exporter

        self._cursor: Optional[str] = None
        self._state = ConsumerState.ACQUIRING
        self._shard = "?"

        self._running = False
        # survives until the next run consumes it, so an early stop is honoured
        self._stop_requested = False
        self._shutdown_event = asyncio.Event()

    # ------------------------------------------------------------------
    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def state(self) -> ConsumerState:
        return self._state

    @property
    def counter(self) -> RecordCounter:
        return self._counter

    @property
    def records_processed(self) -> int:
        return self._counter.value

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    async def run(self, fetcher: BaseShardFetcher, sink: PayloadSink) -> None:
        """
        종료 조건(stop 요청, 샤드 종료, 복구 불가능한 오류)까지 블록합니다.

        Args:
            fetcher (BaseShardFetcher): 샤드 조회 기능
            sink (PayloadSink): 레코드마다 (RecoveredPayload, 순번)으로 호출되는 콜백.
                동기 함수와 코루틴 함수 모두 허용합니다.

        Raises:
            CursorAcquisitionFailed: 시작 커서를 획득하지 못한 경우
            FetchFatalError: 조회가 복구 불가능하게 실패했거나 재시도 한도를 넘은 경우
        """
        if self._running:
            raise RuntimeError("ShardConsumer is already running")

        self._running = True
        self._shutdown_event.clear()
        self._shard = fetcher.describe()

        try:
            await self._acquire_cursor(fetcher)
            await self._run_loop(fetcher, sink)
        except Exception as exc:
            self._set_state(ConsumerState.FAILED)
            logger.error("Shard %s consumer failed: %s", self._shard, exc, exc_info=True)
            raise
        else:
            self._set_state(ConsumerState.STOPPED)
            logger.info(
                "Shard %s consumer stopped after %d records",
                self._shard,
                self._counter.value,
            )
        finally:
            self._running = False
            self._stop_requested = False
            self._shutdown_event.set()

    def request_stop(self) -> None:
        """Asks the loop to stop before the next fetch or retry. Safe to call from a sink."""
        if not self._stop_requested:
            logger.info("Shutdown requested for shard %s", self._shard)
        self._stop_requested = True

    async def stop(self) -> None:
        self.request_stop()
        if self._running:
            await self._shutdown_event.wait()

    # ------------------------------------------------------------------
    async def _acquire_cursor(self, fetcher: BaseShardFetcher) -> None:
        self._set_state(ConsumerState.ACQUIRING)
        start_position = self._config.start_position
        try:
            self._cursor = await asyncio.to_thread(
                fetcher.acquire_cursor, start_position
            )
        except Exception as exc:
            raise CursorAcquisitionFailed(
                f"Unable to get {start_position.value} cursor for {self._shard}: {exc}"
            ) from exc
        # the fetcher may only know its shard once the cursor is acquired
        self._shard = fetcher.describe()
        self._set_state(ConsumerState.POLLING)
        logger.info(
            "Starting consumer loop for shard %s at %s",
            self._shard,
            start_position.value,
        )

    async def _run_loop(self, fetcher: BaseShardFetcher, sink: PayloadSink) -> None:
        while not self._stop_requested:
            result = await self._fetch_with_retry(fetcher)
            if result is None:
                return

            for record in result.records:
                await self._dispatch(record, sink)

            # replaced even after an empty batch
            self._cursor = result.next_cursor
            if self._cursor is None:
                logger.info("Shard %s is closed, no next cursor", self._shard)
                return

            if not result.records and not self._stop_requested:
                await asyncio.sleep(self._config.poll_interval_ms / 1000.0)

    async def _fetch_with_retry(
        self, fetcher: BaseShardFetcher
    ) -> Optional[FetchResult]:
        """Returns None when a stop was requested while retrying."""
        if self._cursor is None:
            raise RuntimeError("Cursor must be acquired before fetching")

        failures = 0
        while True:
            started = time.monotonic()
            try:
                result = await asyncio.to_thread(
                    fetcher.fetch_next_batch, self._cursor, self._config.batch_limit
                )
            except FetchTransientError as exc:
                failures += 1
                if self._metrics_exporter is not None:
                    self._metrics_exporter.observe_fetch_retry(self._shard)
                if self._stop_requested:
                    logger.info(
                        "Shard %s stopping after failed fetch, cursor kept: %s",
                        self._shard,
                        exc,
                    )
                    return None
                if failures > self._config.max_fetch_retries:
                    raise FetchFatalError(
                        f"Giving up on {self._shard} after {failures} consecutive "
                        f"failed fetches: {exc}",
                        attempts=failures,
                    ) from exc
                self._set_state(ConsumerState.DEGRADED)
                logger.warning(
                    "Transient fetch failure %d/%d for shard %s: %s",
                    failures,
                    self._config.max_fetch_retries,
                    self._shard,
                    exc,
                )
                await self._apply_backoff(failures)
                if self._stop_requested:
                    return None
                continue
            except FetchFatalError:
                raise
            except Exception as exc:
                raise FetchFatalError(
                    f"Failed to fetch records from {self._shard}: {exc}"
                ) from exc

            if self._state == ConsumerState.DEGRADED:
                logger.info(
                    "Shard %s recovered after %d failed fetches", self._shard, failures
                )
            self._set_state(ConsumerState.POLLING)
            if self._metrics_exporter is not None:
                self._metrics_exporter.observe_fetch(
                    self._shard, time.monotonic() - started, result.millis_behind_latest
                )
            return result

    async def _apply_backoff(self, attempt: int) -> None:
        base_delay_ms = self._config.retry_backoff_ms

        if self._config.exponential_backoff:
            delay_ms = base_delay_ms * (2 ** (attempt - 1))
            delay_ms = min(delay_ms, self._config.max_retry_backoff_ms)
        else:
            delay_ms = base_delay_ms

        if self._config.retry_jitter_ms > 0:
            jitter = random.uniform(0, self._config.retry_jitter_ms)
            delay_ms += jitter

        await asyncio.sleep(delay_ms / 1000.0)

    async def _dispatch(self, record: RawRecord, sink: PayloadSink) -> None:
        recovered = self._decoder.recover(record.data)
        sequence_no = self._counter.increment()
        if self._metrics_exporter is not None:
            self._metrics_exporter.observe_record(self._shard, recovered.codec)

        result = sink(recovered, sequence_no)
        if inspect.isawaitable(result):
            await result

        diag_every = self._config.diag_log_every
        if diag_every > 0 and sequence_no % diag_every == 0:
            logger.info(
                "Processed %d records, shard=%s last_sequence=%s",
                sequence_no,
                self._shard,
                record.sequence_number,
            )

    def _set_state(self, state: ConsumerState) -> None:
        self._state = state
        if self._metrics_exporter is not None:
            self._metrics_exporter.set_state(self._shard, state)
