"""Whole-file JSON persistence."""

from market_digest.persistence.io import AtomicJsonWriter, read_json


__all__ = ["AtomicJsonWriter", "read_json"]
