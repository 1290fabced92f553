#!/usr/bin/env python3
"""Shard Consumer — Quick Start.

Consumes one shard of a Kinesis stream and logs every recovered payload.
Configuration comes from the environment (or .env), e.g.:

    KINESIS_STREAM_NAME=my.kinesis.stream
    KINESIS_SHARD_ID=shardId-000000000000
    SHARD_CONSUMER_START_POSITION=latest
    DECODER_CODEC_ORDER=zstd,gzip

Usage:
    uv run python main.py
"""

import asyncio
import signal
import sys

from shard_consumer.config import KinesisConfig
from shard_consumer.control_plane.shard_consumer import ShardConsumer
from shard_consumer.decoding.payload_decoder import PayloadDecoder
from shard_consumer.errors import ShardConsumerError
from shard_consumer.fetch.kinesis_fetcher import KinesisShardFetcher
from shard_consumer.logger import LogManager
from shard_consumer.metrics_exporter import PrometheusMetricsExporter
from shard_consumer.sinks import LoggingSink

logger = LogManager.get_logger(__name__)


async def main() -> int:
    config = KinesisConfig()
    LogManager.set_level(config.LOG_LEVEL.upper())
    consumer = ShardConsumer(
        config=config.consumer,
        decoder=PayloadDecoder(config.decoder),
        metrics_exporter=PrometheusMetricsExporter(config.metrics),
    )
    fetcher = KinesisShardFetcher(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.request_stop)

    try:
        await consumer.run(fetcher, LoggingSink())
    except ShardConsumerError as exc:
        logger.error("Shard consumer terminated: %s (cause: %r)", exc, exc.__cause__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
