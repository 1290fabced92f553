from typing import ClassVar, Optional, cast

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shard_consumer.dto import DEFAULT_CODEC_ORDER, StartPosition


class DecoderConfig(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="DECODER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Fixed-size region after every payload, excluded from decoding
    trailer_size: int = Field(default=16, ge=0)
    codec_order: str | list[str] = list(DEFAULT_CODEC_ORDER)

    @field_validator("codec_order", mode="before")
    @classmethod
    def _parse_codec_order(cls, v: object) -> list[str]:
        if isinstance(v, str):
            v = v.split("#", 1)[0].split(",")
        if isinstance(v, (list, tuple)):
            names: list[str] = []
            for item in cast(list[object], v):
                if not isinstance(item, str):
                    raise TypeError("codec_order entries must be str")
                name = item.strip().lower()
                if not name:
                    continue
                if name not in DEFAULT_CODEC_ORDER:
                    raise ValueError(
                        f"Unknown codec {name!r}, expected one of {DEFAULT_CODEC_ORDER}"
                    )
                if name not in names:
                    names.append(name)
            return names
        raise TypeError(
            f"codec_order must be str or list[str], got {type(v).__name__}"
        )


class ConsumerConfig(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="SHARD_CONSUMER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    start_position: StartPosition = StartPosition.EARLIEST
    batch_limit: int = Field(default=100, gt=0, le=10000)
    poll_interval_ms: int = Field(default=500, ge=0)
    max_fetch_retries: int = Field(default=5, ge=0)
    retry_backoff_ms: int = 200
    exponential_backoff: bool = True
    max_retry_backoff_ms: int = 10000
    retry_jitter_ms: int = 100
    diag_log_every: int = 1000

    @field_validator("start_position", mode="before")
    @classmethod
    def _normalize_start_position(cls, v: object) -> StartPosition:
        if isinstance(v, StartPosition):
            return v
        if isinstance(v, str):
            cleaned = v.split("#", 1)[0].strip().lower()
            return StartPosition(cleaned)
        raise TypeError(
            f"start_position must be str or StartPosition, got {type(v).__name__}"
        )


class MetricsConfig(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="METRICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = False
    port: int = 9091


class KinesisConfig(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="KINESIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    STREAM_NAME: str = "my.kinesis.stream"
    SHARD_ID: Optional[str] = None
    REGION: str = "us-east-1"
    ENDPOINT_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    consumer: ConsumerConfig = ConsumerConfig()
    decoder: DecoderConfig = DecoderConfig()
    metrics: MetricsConfig = MetricsConfig()

    def get_client_kwargs(self) -> dict[str, str]:
        kwargs = {"region_name": self.REGION}
        if self.ENDPOINT_URL:
            kwargs["endpoint_url"] = self.ENDPOINT_URL
        return kwargs
