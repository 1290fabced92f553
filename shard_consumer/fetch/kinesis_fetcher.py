# -*- coding: utf-8 -*-
"""KinesisShardFetcher - boto3 backed fetch capability for one Kinesis shard."""

from typing import Any, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..config import KinesisConfig
from ..dto import FetchResult, RawRecord, StartPosition
from ..errors import FetchFatalError, FetchTransientError
from ..logger import LogManager
from .base import BaseShardFetcher

logger = LogManager.get_logger(__name__)

_ITERATOR_TYPES = {
    StartPosition.EARLIEST: "TRIM_HORIZON",
    StartPosition.LATEST: "LATEST",
}

_TRANSIENT_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "LimitExceededException",
        "KMSThrottlingException",
        "ThrottlingException",
        "InternalFailure",
        "InternalFailureException",
        "ServiceUnavailable",
        "ServiceUnavailableException",
    }
)

_TRANSIENT_BOTOCORE_ERRORS = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    ReadTimeoutError,
)


def _classify(operation: str, exc: Exception) -> Exception:
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        if code in _TRANSIENT_ERROR_CODES:
            return FetchTransientError(f"{operation} throttled or unavailable: {code}")
        return FetchFatalError(f"{operation} failed: {code or exc}")
    if isinstance(exc, _TRANSIENT_BOTOCORE_ERRORS):
        return FetchTransientError(f"{operation} connection error: {exc}")
    return FetchFatalError(f"{operation} failed: {exc}")


class KinesisShardFetcher(BaseShardFetcher):
    """Reads a single shard of a Kinesis data stream with GetShardIterator/GetRecords."""

    def __init__(self, config: KinesisConfig, client: Optional[Any] = None) -> None:
        self._config = config
        self._stream_name = config.STREAM_NAME
        self._shard_id: Optional[str] = config.SHARD_ID
        self._client = client or boto3.client("kinesis", **config.get_client_kwargs())

    @property
    def shard_id(self) -> Optional[str]:
        return self._shard_id

    def describe(self) -> str:
        return f"{self._stream_name}/{self._shard_id or '?'}"

    # ------------------------------------------------------------------
    def _resolve_shard_id(self) -> str:
        if self._shard_id:
            return self._shard_id
        shards = self._client.list_shards(StreamName=self._stream_name)["Shards"]
        if not shards:
            raise FetchFatalError(f"No shards found in stream: {self._stream_name}")
        self._shard_id = shards[0]["ShardId"]
        logger.info(
            "No shard configured, using first shard %s of %s",
            self._shard_id,
            self._stream_name,
        )
        return self._shard_id

    def acquire_cursor(self, start_position: StartPosition) -> str:
        try:
            shard_id = self._resolve_shard_id()
            resp = self._client.get_shard_iterator(
                StreamName=self._stream_name,
                ShardId=shard_id,
                ShardIteratorType=_ITERATOR_TYPES[start_position],
            )
        except (ClientError, BotoCoreError) as exc:
            raise _classify("GetShardIterator", exc) from exc
        logger.info(
            "Acquired %s iterator for %s",
            _ITERATOR_TYPES[start_position],
            self.describe(),
        )
        return resp["ShardIterator"]

    def fetch_next_batch(self, cursor: str, max_records: int) -> FetchResult:
        try:
            resp = self._client.get_records(ShardIterator=cursor, Limit=max_records)
        except (ClientError, BotoCoreError) as exc:
            raise _classify("GetRecords", exc) from exc

        records = []
        for item in resp.get("Records", []):
            arrival = item.get("ApproximateArrivalTimestamp")
            records.append(
                RawRecord(
                    data=bytes(item["Data"]),
                    sequence_number=item["SequenceNumber"],
                    partition_key=item.get("PartitionKey"),
                    arrival_timestamp=arrival.timestamp() if arrival else None,
                )
            )
        return FetchResult(
            records=records,
            next_cursor=resp.get("NextShardIterator"),
            millis_behind_latest=resp.get("MillisBehindLatest"),
        )
