"""Daily market digest pipeline.

Collects news and market data, scores and deduplicates items, runs a
budget-aware two-stage model analysis and publishes the digest.
"""

__version__ = "0.1.0"
