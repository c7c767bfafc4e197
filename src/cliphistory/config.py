from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import redis
from dotenv import load_dotenv

DEFAULT_MAX_ENTRIES = 100
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_NAMESPACE = "cliphistory"


def load_env_file(env_path: Optional[Path] = None) -> None:
    path = env_path or Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path, override=False)


def validate_max_entries(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"max_entries must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"max_entries must be at least 1, got {value}")
    return value


def validate_poll_interval(value: float) -> float:
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"poll_interval must be a positive finite number, got {value}")
    return seconds


@dataclass(frozen=True)
class RedisConfig:
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "RedisConfig":
        load_env_file(env_path)

        uri = os.getenv("REDIS_URI")
        if uri:
            return cls.from_uri(uri)

        host = os.getenv("REDIS_HOST", cls.host)
        port_raw = os.getenv("REDIS_PORT")
        db_raw = os.getenv("REDIS_DB")
        password = os.getenv("REDIS_PASSWORD") or None

        port = int(port_raw) if port_raw else cls.port
        db = int(db_raw) if db_raw else cls.db

        return cls(host=host, port=port, db=db, password=password)

    @classmethod
    def from_uri(cls, uri: str) -> "RedisConfig":
        parsed = urlparse(uri)
        if parsed.scheme not in {"redis", "rediss"}:
            raise ValueError(
                f"Unsupported Redis URI scheme: {parsed.scheme!r}")

        host = parsed.hostname or cls.host
        port = parsed.port or cls.port
        password = parsed.password or None
        db_fragment = parsed.path.lstrip("/")
        db = int(db_fragment) if db_fragment else cls.db

        return cls(host=host, port=port, db=db, password=password)

    def create_client(self) -> redis.Redis:
        return redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )


@dataclass(frozen=True)
class HistoryConfig:
    max_entries: int = DEFAULT_MAX_ENTRIES
    poll_interval: float = DEFAULT_POLL_INTERVAL
    namespace: str = DEFAULT_NAMESPACE

    def __post_init__(self) -> None:
        validate_max_entries(self.max_entries)
        object.__setattr__(self, "poll_interval", validate_poll_interval(self.poll_interval))
        if not self.namespace:
            raise ValueError("namespace must not be empty")

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "HistoryConfig":
        load_env_file(env_path)

        max_raw = os.getenv("CLIPHISTORY_MAX_ENTRIES")
        interval_raw = os.getenv("CLIPHISTORY_POLL_INTERVAL")
        namespace = os.getenv("CLIPHISTORY_NAMESPACE") or cls.namespace

        max_entries = int(max_raw) if max_raw else cls.max_entries
        poll_interval = float(interval_raw) if interval_raw else cls.poll_interval

        return cls(max_entries=max_entries, poll_interval=poll_interval, namespace=namespace)
