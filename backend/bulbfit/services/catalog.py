"""
Catalog gateway: answers "which options exist for this category given the
upstream filters".

Two implementations share one contract:
- LocalCatalog queries the SQLite catalog directly.
- HttpCatalog calls the /fitment/options endpoint of a remote BulbFit service.

Neither caches; caching belongs to the per-session FetchCache.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from bulbfit import db
from bulbfit.config import settings
from bulbfit.services.bulb_decision import BulbCandidate

logger = logging.getLogger(__name__)


class Category(str, Enum):
    YEARS = "years"
    BRANDS = "brands"
    MODELS = "models"
    MODIFICATIONS = "modifications"
    POSITIONS = "positions"
    BULBS = "bulbs"


# Query-string "level" used by the options endpoint
CATEGORY_LEVELS: dict[Category, str] = {
    Category.YEARS: "years",
    Category.BRANDS: "brands",
    Category.MODELS: "models",
    Category.MODIFICATIONS: "mods",
    Category.POSITIONS: "positions",
    Category.BULBS: "bulbsByPosition",
}
LEVEL_CATEGORIES: dict[str, Category] = {level: category for category, level in CATEGORY_LEVELS.items()}


@dataclass(frozen=True)
class Modification:
    model_type: str | None = None
    body_type: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.model_type and not self.body_type


@dataclass(frozen=True)
class Position:
    position_category: str | None = None
    position: str | None = None

    @property
    def is_empty(self) -> bool:
        # No bulbs can be looked up without the lamp position itself
        return not self.position


def parse_rows(category: Category, rows: list[Any]) -> list[Any]:
    """Map raw catalog rows (DB dicts or JSON) onto domain values."""
    if category == Category.YEARS:
        return [int(r) for r in rows]
    if category in (Category.BRANDS, Category.MODELS):
        return [str(r) for r in rows]
    if category == Category.MODIFICATIONS:
        return [Modification(r.get("model_type_name") or None, r.get("body_type") or None) for r in rows]
    if category == Category.POSITIONS:
        return [Position(r.get("position_category") or None, r.get("position")) for r in rows]
    if category == Category.BULBS:
        out = []
        for r in rows:
            if isinstance(r, str):
                out.append(BulbCandidate(r))
            else:
                out.append(BulbCandidate(r["bulb_type"], r.get("technology") or None))
        return out
    raise ValueError(f"Unknown category: {category}")


class CatalogGateway(ABC):
    """Base class for catalog backends."""

    @abstractmethod
    async def query(self, category: Category, filters: dict[str, Any]) -> list[Any]:
        """
        Return the options for a category.

        filters keys: year, brand, model, model_type, body_type,
        position_category, position. Only the fields upstream of the
        category are read.
        """
        pass


class LocalCatalog(CatalogGateway):
    """Catalog backed by the local SQLite database."""

    async def query(self, category: Category, filters: dict[str, Any]) -> list[Any]:
        f = filters
        if category == Category.YEARS:
            rows = await db.get_years()
        elif category == Category.BRANDS:
            rows = await db.get_brands(f["year"])
        elif category == Category.MODELS:
            rows = await db.get_models(f["year"], f["brand"])
        elif category == Category.MODIFICATIONS:
            rows = await db.get_modifications(f["year"], f["brand"], f["model"])
        elif category == Category.POSITIONS:
            rows = await db.get_positions(
                f["year"], f["brand"], f["model"], f.get("model_type"), f.get("body_type")
            )
        elif category == Category.BULBS:
            rows = await db.get_bulbs(
                f["year"],
                f["brand"],
                f["model"],
                f.get("model_type"),
                f.get("body_type"),
                f.get("position_category"),
                f["position"],
            )
        else:
            raise ValueError(f"Unknown category: {category}")
        return parse_rows(category, rows)


class HttpCatalog(CatalogGateway):
    """Catalog served by a remote BulbFit /fitment/options endpoint."""

    def __init__(self, base_url: str, timeout: int | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.catalog_timeout

    def build_params(self, category: Category, filters: dict[str, Any]) -> dict[str, str]:
        params = {"level": CATEGORY_LEVELS[category]}
        mapping = (
            ("year", "year"),
            ("brand", "brand"),
            ("model", "model"),
            ("model_type", "modelType"),
            ("body_type", "bodyType"),
            ("position_category", "positionCategory"),
            ("position", "position"),
        )
        for key, param in mapping:
            if key in filters:
                value = filters[key]
                params[param] = "" if value is None else str(value)
        return params

    async def query(self, category: Category, filters: dict[str, Any]) -> list[Any]:
        url = f"{self.base_url}/fitment/options"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=self.build_params(category, filters))
            response.raise_for_status()
            data = response.json()
        return parse_rows(category, data)


def get_catalog() -> CatalogGateway:
    """Catalog backend selected by settings."""
    if settings.catalog_base_url:
        logger.info(f"Using remote catalog at {settings.catalog_base_url}")
        return HttpCatalog(settings.catalog_base_url)
    return LocalCatalog()
