# kafka_dash/core/config.py
import json
from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Dashboard settings loaded from environment variables (and .env).

    Notes
    -----
    - Every variable is prefixed with ``KAFKA_DASH_``.
    - `brokers` accepts a JSON array or a comma-separated string:
        KAFKA_DASH_BROKERS='["kafka-1:9092","kafka-2:9092"]'
      or:
        KAFKA_DASH_BROKERS='kafka-1:9092,kafka-2:9092'
    - Command-line flags override these values (see kafka_dash.cli).
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KAFKA_DASH_",
        extra="ignore",
    )

    # ---------- Kafka client/admin ----------
    brokers: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["localhost:9092"])
    client_id: str = "kafka-dash"
    kafka_api_version: str | None = None

    # Client timeouts (ms)
    request_timeout_ms: int = 20_000
    metadata_max_age_ms: int = 30_000
    api_version_auto_timeout_ms: int = 10_000

    # Admin connection retry
    connect_max_tries: int = Field(default=3, ge=1)
    connect_backoff_sec: float = Field(default=1.0, ge=0)

    # ---------- Security (set when using SASL/SSL) ----------
    security_protocol: str = "PLAINTEXT"   # e.g. "SASL_SSL", "SSL"
    sasl_mechanism: str | None = None
    sasl_plain_username: str | None = None
    sasl_plain_password: str | None = None
    ssl_cafile: str | None = None

    # ---------- Report building ----------
    query_timeout_sec: float = Field(
        default=10.0, gt=0,
        description="Upper bound for a single per-partition lookup."
    )
    max_workers: int = Field(
        default=8, ge=1, le=64,
        description="Thread pool size for per-partition lookups."
    )

    # ---------- Logging ----------
    log_level: str = "INFO"
    log_file: str | None = None

    @field_validator("brokers", mode="before")
    def _parse_brokers(cls, v):
        """Accept JSON array or comma-separated string."""
        if v is None:
            return ["localhost:9092"]
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(s).strip() for s in parsed if str(s).strip()]
            except ValueError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return [str(s).strip() for s in v if str(s).strip()]

    @field_validator("brokers")
    def _require_brokers(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("at least one broker address is required")
        for addr in v:
            host, sep, port = addr.rpartition(":")
            if not sep or not host or not port.isdigit():
                raise ValueError(f"broker address must be host:port, got {addr!r}")
        return v

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
