"""Plain-text rendering of the search screen for a terminal."""

from __future__ import annotations

from src.client.controller import SearchState
from src.presenter.deals import present_all
from src.shared.models import PresentedDeal, SearchPhase

_WELCOME = [
    "🎯 Find Your Perfect Deal",
    "Enter what you're looking for and we'll find the best deals from across the web",
    "",
    "✓ Best prices guaranteed",
    "✓ Real-time availability",
    "✓ Top-rated products",
]


def render_card(deal: PresentedDeal) -> str:
    """Render one deal card as a block of lines."""
    header = deal.rank_label
    if deal.availability_label:
        header += f"  [{deal.availability_label}]"

    price_line = deal.formatted_price
    if deal.discount_label:
        price_line += f"  {deal.discount_label}"

    lines = [header, deal.title]
    if deal.retailer:
        lines.append(deal.retailer)
    lines.append(price_line)
    if deal.has_original_price_strike and deal.formatted_original_price:
        lines.append(f"Was: {deal.formatted_original_price}")
    if deal.description:
        lines.append(deal.description)
    if deal.star_display is not None:
        lines.append(deal.star_display)
    lines.append(f"View Deal → {deal.url}")
    return "\n".join(lines)


def render_screen(state: SearchState) -> str:
    """Render the results area for the current phase."""
    phase = state.phase
    if phase is SearchPhase.IDLE:
        return "\n".join(_WELCOME)
    if phase is SearchPhase.LOADING:
        return "Searching for best deals..."
    if phase is SearchPhase.EMPTY:
        return "No deals found\nTry a different search term"
    if phase is SearchPhase.ERROR:
        return f"{state.error_message}\nSubmit your search again to retry"

    header = [
        f'Top {len(state.deals)} Deals for "{state.requirement}"',
        "Sorted by relevance and price",
    ]
    cards = [render_card(deal) for deal in present_all(state.deals)]
    return "\n\n".join(["\n".join(header), *cards])
