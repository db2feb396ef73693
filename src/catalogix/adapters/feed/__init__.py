"""Public interface for the JSON-lines supplier feed adapter."""

from __future__ import annotations

from .reader import FeedBatch, load_feed, read_feed
from .schema import PriceLine, ProductLine
from .translator import to_price_upserts, to_supplier_entity

__all__ = [
    "FeedBatch",
    "PriceLine",
    "ProductLine",
    "load_feed",
    "read_feed",
    "to_price_upserts",
    "to_supplier_entity",
]
