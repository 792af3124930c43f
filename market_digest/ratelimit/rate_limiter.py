"""Per-source token-bucket rate limiter for outbound API calls."""

import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import structlog

from market_digest.config.schemas import RateLimitConfig
from market_digest.data_model import StrictBaseModel


logger = structlog.get_logger()

DEFAULT_REQ_PER_MIN = 10.0
MIN_WAIT_SECONDS = 0.1


class BucketStatus(StrictBaseModel):
    """Read-only snapshot of one bucket."""

    name: str
    tokens: int
    max_tokens: int
    refill_interval_ms: float
    req_per_min: float


@dataclass
class _Bucket:
    """Token bucket state for one source.

    Tokens are whole units. Refill adds ``floor(elapsed / interval)``
    tokens and carries the remainder of the elapsed time forward.
    """

    name: str
    max_tokens: int
    refill_interval_ms: float
    tokens: int = 0
    last_refill: float = 0.0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def refill(self, now: float) -> None:
        """Refill tokens based on elapsed time.

        Must be called while holding the lock.
        """
        interval = self.refill_interval_ms / 1000.0
        elapsed = now - self.last_refill
        if elapsed < interval:
            return
        added = math.floor(elapsed / interval)
        self.tokens = min(self.max_tokens, self.tokens + added)
        if self.tokens >= self.max_tokens:
            self.last_refill = now
        else:
            self.last_refill += added * interval


class RateLimiter:
    """Registry of token buckets keyed by source name.

    Thread-safe: each bucket is guarded by its own lock and callers never
    sleep while holding it.
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Monotonic clock in seconds. Defaults to time.monotonic.
            sleep: Sleep function. Defaults to time.sleep.
        """
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._buckets: dict[str, _Bucket] = {}
        self._registry_lock = threading.Lock()
        self._log = logger.bind(component="ratelimit")

    def init(self, config: Mapping[str, RateLimitConfig]) -> None:
        """Register every configured bucket.

        Args:
            config: Mapping of source name to bucket settings.
        """
        for name, bucket in config.items():
            self.register(
                name,
                req_per_min=bucket.req_per_min,
                interval_ms=bucket.interval_ms,
                max_tokens=bucket.max_tokens,
            )
        self._log.info("rate_limiter_initialized", buckets=len(self._buckets))

    def register(
        self,
        name: str,
        *,
        req_per_min: float | None = None,
        interval_ms: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Register a bucket. Re-registering an existing name is a no-op.

        Args:
            name: Source name.
            req_per_min: Requests per minute (burst defaults to this value).
            interval_ms: Milliseconds between requests (burst defaults to 1).
            max_tokens: Burst capacity override.

        Raises:
            ValueError: If neither or both rate shapes are given.
        """
        if req_per_min is not None and interval_ms is None:
            if req_per_min <= 0:
                msg = f"Bucket {name!r}: req_per_min must be positive"
                raise ValueError(msg)
            refill_interval_ms = 60000.0 / req_per_min
            default_capacity = max(1, int(req_per_min))
        elif interval_ms is not None and req_per_min is None:
            if interval_ms <= 0:
                msg = f"Bucket {name!r}: interval_ms must be positive"
                raise ValueError(msg)
            refill_interval_ms = float(interval_ms)
            default_capacity = 1
        else:
            msg = f"Bucket {name!r} needs exactly one of req_per_min or interval_ms"
            raise ValueError(msg)

        capacity = max_tokens if max_tokens is not None else default_capacity
        if capacity < 1:
            msg = f"Bucket {name!r}: max_tokens must be at least 1"
            raise ValueError(msg)

        with self._registry_lock:
            if name in self._buckets:
                return
            self._buckets[name] = _Bucket(
                name=name,
                max_tokens=capacity,
                refill_interval_ms=refill_interval_ms,
                tokens=capacity,
                last_refill=self._clock(),
            )

        self._log.debug(
            "bucket_registered",
            bucket=name,
            max_tokens=capacity,
            refill_interval_ms=round(refill_interval_ms, 3),
        )

    def acquire(self, name: str) -> None:
        """Take one token, blocking until one is available.

        Unregistered sources get a default bucket of 10 requests per minute.

        Args:
            name: Source name.
        """
        bucket = self._buckets.get(name)
        if bucket is None:
            self.register(name, req_per_min=DEFAULT_REQ_PER_MIN)
            bucket = self._buckets[name]

        while True:
            with bucket.lock:
                now = self._clock()
                bucket.refill(now)
                if bucket.tokens >= 1:
                    bucket.tokens -= 1
                    return
                interval = bucket.refill_interval_ms / 1000.0
                wait_time = max(MIN_WAIT_SECONDS, interval - (now - bucket.last_refill))

            self._log.debug("rate_limited", bucket=name, wait_seconds=round(wait_time, 3))
            # Release lock before sleeping
            self._sleep(wait_time)

    def get_status(self) -> dict[str, BucketStatus]:
        """Return a snapshot of every bucket.

        Returns:
            Mapping of source name to bucket status.
        """
        with self._registry_lock:
            buckets = list(self._buckets.values())

        status: dict[str, BucketStatus] = {}
        for bucket in buckets:
            with bucket.lock:
                bucket.refill(self._clock())
                status[bucket.name] = BucketStatus(
                    name=bucket.name,
                    tokens=bucket.tokens,
                    max_tokens=bucket.max_tokens,
                    refill_interval_ms=bucket.refill_interval_ms,
                    req_per_min=round(60000.0 / bucket.refill_interval_ms, 6),
                )
        return status
