"""Digest delivery and operational alerts."""

from market_digest.publishers.alerts import (
    Alert,
    AlertLevel,
    AlertOutcome,
    AlertPublisher,
)
from market_digest.publishers.archive import ArchivePublisher, ArchiveRecord
from market_digest.publishers.errors import PublishError
from market_digest.publishers.splitter import split_message
from market_digest.publishers.telegram import PublishOutcome, TelegramPublisher


__all__ = [
    "Alert",
    "AlertLevel",
    "AlertOutcome",
    "AlertPublisher",
    "ArchivePublisher",
    "ArchiveRecord",
    "PublishError",
    "PublishOutcome",
    "TelegramPublisher",
    "split_message",
]
