"""Fetching hosts sources and aggregating them into record blocks."""

from .aggregator import AggregationResult, aggregate_results
from .fetcher import Fetcher, SourceFetcher, fetch_sources

__all__ = [
    "AggregationResult",
    "Fetcher",
    "SourceFetcher",
    "aggregate_results",
    "fetch_sources",
]
