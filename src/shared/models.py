"""Shared data models used across the application."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SearchPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


class Deal(BaseModel):
    """A single offer as returned by the search backend."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    retailer: str = ""
    description: str = ""
    price: float = Field(ge=0)
    currency: str
    original_price: float | None = Field(default=None, ge=0, alias="originalPrice")
    rating: float | None = Field(default=None, ge=0, le=5)
    availability: str = ""
    url: str


class SearchRequest(BaseModel):
    requirement: str


class SearchResponse(BaseModel):
    success: bool
    deals: list[Deal] = Field(default_factory=list)
    error: str | None = None


class PresentedDeal(BaseModel):
    """Display-ready view of a deal at a given rank."""

    model_config = ConfigDict(frozen=True)

    rank: int
    rank_label: str
    title: str
    retailer: str
    description: str
    availability_label: str
    url: str
    formatted_price: str
    formatted_original_price: str | None = None
    discount_percent: int | None = None
    discount_label: str | None = None
    has_original_price_strike: bool = False
    star_count: int = 0
    star_display: str | None = None
