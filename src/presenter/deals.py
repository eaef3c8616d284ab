"""Display-ready derived values for deals.

Everything here is pure: no I/O, no state, and ``present`` accepts any
well-formed :class:`Deal`, including one without an original price or a
rating.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from src.shared.models import Deal, PresentedDeal

STAR_GLYPH = "⭐"


def has_original_price_strike(original_price: float | None, price: float) -> bool:
    return original_price is not None and original_price > price


def discount_percent(original_price: float | None, price: float) -> int | None:
    """Percentage saved against *original_price*, rounded half up.

    ``None`` exactly when no struck-through original price is shown. Prices
    are non-negative, so a struck original price is never zero. Ties round
    up (``floor(x + 0.5)``), so 37.5 becomes 38.
    """
    if not has_original_price_strike(original_price, price):
        return None
    return math.floor((original_price - price) / original_price * 100 + 0.5)


def format_price(price: float, currency: str) -> str:
    return f"{currency} ${price:.2f}"


def format_number(value: float) -> str:
    """Render *value* the way a person writes it: ``4.0`` -> ``4``, ``4.5`` -> ``4.5``."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def star_count(rating: float) -> int:
    """Whole stars plus one more when the fractional part is at least .5."""
    full_stars = math.floor(rating)
    return full_stars + (1 if rating % 1 >= 0.5 else 0)


def star_display(rating: float | None) -> str | None:
    if rating is None:
        return None
    return STAR_GLYPH * star_count(rating) + f" {format_number(rating)}"


def rank_label(rank: int) -> str:
    return f"#{rank}"


def present(deal: Deal, rank: int) -> PresentedDeal:
    """Build the :class:`PresentedDeal` shown at 1-based *rank*."""
    discount = discount_percent(deal.original_price, deal.price)
    struck = has_original_price_strike(deal.original_price, deal.price)
    return PresentedDeal(
        rank=rank,
        rank_label=rank_label(rank),
        title=deal.title,
        retailer=deal.retailer,
        description=deal.description,
        availability_label=deal.availability,
        url=deal.url,
        formatted_price=format_price(deal.price, deal.currency),
        formatted_original_price=f"${deal.original_price:.2f}" if struck else None,
        discount_percent=discount,
        discount_label=f"{discount}% OFF" if discount else None,
        has_original_price_strike=struck,
        star_count=star_count(deal.rating) if deal.rating is not None else 0,
        star_display=star_display(deal.rating),
    )


def present_all(deals: Sequence[Deal]) -> list[PresentedDeal]:
    """Present *deals* in received order; rank is position + 1."""
    return [present(deal, index + 1) for index, deal in enumerate(deals)]
