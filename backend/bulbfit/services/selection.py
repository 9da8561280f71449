"""
Cascade controller for progressive bulb selection.

Stages are strictly ordered: year -> brand -> model -> modification -> position.
Setting a stage unsets every later stage, drops their option lists, cancels
their in-flight fetches and (for a non-empty value) requests the options of
the next category. Once the position is set, the same pipeline fetches the
bulb candidates and the decision engine picks a presentation mode.

State transitions are plain synchronous method calls; only the fetches run
as asyncio tasks. A fetch result is written only while the selection prefix
that produced it is still current.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from bulbfit.data.bulb_links import resolve_bulb_url
from bulbfit.services.bulb_decision import BulbDecision, decide
from bulbfit.services.catalog import CatalogGateway, Category, Modification, Position
from bulbfit.services.fetch_cache import FetchCache

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    YEAR = 0
    BRAND = 1
    MODEL = 2
    MODIFICATION = 3
    POSITION = 4


# Category i lists the options for stage i; BULBS follows the last stage
CATEGORY_ORDER: list[Category] = [
    Category.YEARS,
    Category.BRANDS,
    Category.MODELS,
    Category.MODIFICATIONS,
    Category.POSITIONS,
    Category.BULBS,
]


class SelectionError(ValueError):
    """Invalid stage or out-of-order selection."""


@dataclass
class FilterTuple:
    year: int | None = None
    brand: str | None = None
    model: str | None = None
    modification: Modification | None = None
    position: Position | None = None

    def get(self, stage: Stage) -> Any:
        return getattr(self, stage.name.lower())

    def set(self, stage: Stage, value: Any) -> None:
        setattr(self, stage.name.lower(), value)

    def is_set(self, stage: Stage) -> bool:
        return self.get(stage) is not None

    def prefix(self, length: int) -> tuple:
        """Values of the first `length` stages (the freshness key of a category)."""
        return tuple(self.get(Stage(i)) for i in range(length))

    def filters(self, length: int) -> dict[str, Any]:
        """Gateway filter dict for the first `length` stages."""
        out: dict[str, Any] = {}
        if length > Stage.YEAR:
            out["year"] = self.year
        if length > Stage.BRAND:
            out["brand"] = self.brand
        if length > Stage.MODEL:
            out["model"] = self.model
        if length > Stage.MODIFICATION:
            out["model_type"] = self.modification.model_type
            out["body_type"] = self.modification.body_type
        if length > Stage.POSITION:
            out["position_category"] = self.position.position_category
            out["position"] = self.position.position
        return out


@dataclass
class CategoryResult:
    category: Category
    options: list[Any] = field(default_factory=list)
    freshness_key: tuple = ()


def _escape(part: str) -> str:
    return part.replace("\\", "\\\\").replace("|", "\\|")


def cache_key(category: Category, prefix: tuple) -> str:
    """
    Full semantic query key: category plus every upstream field.

    Pair stages contribute both sub-fields, with "" for unset ones. Backslash
    and "|" inside a field are escaped, so two different upstream tuples
    never collide.
    """
    parts = [category.value]
    for value in prefix:
        if isinstance(value, Modification):
            parts += [value.model_type or "", value.body_type or ""]
        elif isinstance(value, Position):
            parts += [value.position_category or "", value.position or ""]
        else:
            parts.append("" if value is None else str(value))
    return "|".join(_escape(p) for p in parts)


def _coerce(stage: Stage, value: Any) -> Any:
    """Normalize an incoming stage value; empty values become None."""
    if value is None or value == "":
        return None
    if stage == Stage.YEAR:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise SelectionError(f"Invalid year: {value!r}")
    if stage in (Stage.BRAND, Stage.MODEL):
        value = str(value).strip()
        return value or None
    if stage == Stage.MODIFICATION:
        if isinstance(value, dict):
            value = Modification(
                value.get("model_type") or value.get("modelType"),
                value.get("body_type") or value.get("bodyType"),
            )
        if not isinstance(value, Modification):
            raise SelectionError(f"Invalid modification: {value!r}")
        return None if value.is_empty else value
    if isinstance(value, dict):
        value = Position(
            value.get("position_category") or value.get("positionCategory"),
            value.get("position"),
        )
    if not isinstance(value, Position):
        raise SelectionError(f"Invalid position: {value!r}")
    return None if value.is_empty else value


class CascadeController:
    """Owns one session's selection, option lists and fetch pipeline."""

    def __init__(self, gateway: CatalogGateway, fetcher: FetchCache | None = None, resolve_link=resolve_bulb_url):
        self.gateway = gateway
        self.fetcher = fetcher or FetchCache()
        self.resolve_link = resolve_link
        self.selection = FilterTuple()
        self._results: dict[Category, CategoryResult] = {}
        self._tasks: set[asyncio.Task] = set()

    # ── Reads ──────────────────────────────────────────────────────

    def is_ready_for_stage(self, stage: int) -> bool:
        """True iff every stage before `stage` is set."""
        return all(self.selection.is_set(Stage(i)) for i in range(stage))

    def result(self, category: Category) -> CategoryResult | None:
        """The category's result, only while its freshness key is current."""
        result = self._results.get(category)
        if result is None:
            return None
        index = CATEGORY_ORDER.index(category)
        if result.freshness_key != self.selection.prefix(index):
            return None
        return result

    def options(self, category: Category) -> list[Any]:
        result = self.result(category)
        return list(result.options) if result else []

    def is_loading(self, category: Category) -> bool:
        return self.fetcher.is_loading(category.value)

    @property
    def loading(self) -> dict[str, bool]:
        return {category.value: self.is_loading(category) for category in CATEGORY_ORDER}

    def decision(self) -> BulbDecision | None:
        """Presentation decision; None until the position is set and bulbs have loaded."""
        if not self.is_ready_for_stage(len(Stage)):
            return None
        if self.is_loading(Category.BULBS):
            return None
        return decide(self.options(Category.BULBS), self.resolve_link)

    # ── Transitions ────────────────────────────────────────────────

    def start(self) -> asyncio.Task | None:
        """Load the first category (years)."""
        return self._request(Category.YEARS)

    def set_field(self, stage: int, value: Any) -> asyncio.Task | None:
        """
        Set one stage and cascade.

        Returns the task fetching the next category's options, or None when
        nothing needs fetching (empty value, or served from cache).
        """
        try:
            stage = Stage(stage)
        except ValueError:
            raise SelectionError(f"Unknown stage: {stage!r}")
        if not self.is_ready_for_stage(stage):
            raise SelectionError(f"Cannot set {stage.name.lower()} before earlier stages")

        value = _coerce(stage, value)
        self.selection.set(stage, value)
        for later in range(stage + 1, len(Stage)):
            self.selection.set(Stage(later), None)
        for category in CATEGORY_ORDER[stage + 1:]:
            self.fetcher.cancel(category.value)
            self._results.pop(category, None)

        if value is None:
            return None
        return self._request(CATEGORY_ORDER[stage + 1])

    def clear_all(self) -> asyncio.Task | None:
        """
        Reset the whole selection and every option list.

        The session cache is kept, so the year list is restored from it
        without another catalog call.
        """
        self.selection = FilterTuple()
        for category in CATEGORY_ORDER[1:]:
            self.fetcher.cancel(category.value)
        self._results.clear()
        if self.fetcher.in_flight(Category.YEARS.value):
            return None
        return self.start()

    def close(self) -> None:
        self.fetcher.cancel_all()

    # ── Fetching ───────────────────────────────────────────────────

    def _request(self, category: Category) -> asyncio.Task | None:
        index = CATEGORY_ORDER.index(category)
        prefix = self.selection.prefix(index)
        key = cache_key(category, prefix)

        if self.fetcher.has(key):
            self._store(category, prefix, self.fetcher.get(key))
            return None

        filters = self.selection.filters(index)
        pending = self.fetcher.resolve(category.value, key, lambda: self.gateway.query(category, filters))
        task = asyncio.ensure_future(self._commit(category, prefix, pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _commit(self, category: Category, prefix: tuple, pending) -> list[Any] | None:
        outcome = await pending
        if not outcome.usable:
            return None
        index = CATEGORY_ORDER.index(category)
        if self.selection.prefix(index) != prefix:
            logger.debug(f"Dropping stale {category.value} result for {prefix}")
            return None
        self._store(category, prefix, outcome.value)
        return outcome.value

    def _store(self, category: Category, prefix: tuple, options: list[Any]) -> None:
        self._results[category] = CategoryResult(category, list(options), prefix)
