"""Shared test configuration.

Points the client at a fake backend URL before any application modules are
imported, and provides deal fixtures shaped like backend payloads.
"""

from __future__ import annotations

import os

os.environ["API_BASE_URL"] = "http://deals.test/api"
os.environ["OTEL_EXPORTER_ENDPOINT"] = ""
os.environ["TRACE_CONSOLE"] = "false"

import pytest  # noqa: E402

from src.shared.models import Deal  # noqa: E402


@pytest.fixture
def deal_payloads() -> list[dict]:
    return [
        {
            "title": "Sony WH-1000XM4",
            "retailer": "Amazon",
            "description": "Noise cancelling over-ear headphones",
            "price": 49.99,
            "currency": "USD",
            "originalPrice": 79.99,
            "rating": 4.5,
            "availability": "In Stock",
            "url": "https://shop.example.com/a",
        },
        {
            "title": "Bose QC45",
            "retailer": "Best Buy",
            "description": "Wireless headphones",
            "price": 99.99,
            "currency": "USD",
            "rating": 4.3,
            "availability": "Limited Stock",
            "url": "https://shop.example.com/b",
        },
    ]


@pytest.fixture
def deals(deal_payloads: list[dict]) -> list[Deal]:
    return [Deal.model_validate(p) for p in deal_payloads]
