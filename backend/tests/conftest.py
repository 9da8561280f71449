"""
Shared fixtures for BulbFit backend tests.
"""
import asyncio
import os
import sys
from unittest import mock

import pytest
import pytest_asyncio

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Force local catalog so Settings doesn't pick up a remote one from .env
os.environ["CATALOG_BASE_URL"] = ""

import bulbfit.db as db_mod  # noqa: E402
from bulbfit.db import LAMP_POSITIONS, close_db, insert_fitment_rows  # noqa: E402
from bulbfit.services.bulb_decision import BulbCandidate  # noqa: E402
from bulbfit.services.catalog import CatalogGateway, Category, Modification, Position  # noqa: E402


def _row(year, brand, model, model_type, body_type, category, position, bulb_type, technology=None):
    return {
        "model_year": year,
        "brand": brand,
        "model_name": model,
        "model_type_name": model_type,
        "body_type": body_type,
        "position_category": category,
        "position": position,
        "bulb_type": bulb_type,
        "technology": technology,
    }


SAMPLE_ROWS = [
    # Single answer per position
    _row(2012, "BMW", "3 Series", "320d", "Sedan", "Headlight", "Low Beam", "H7"),
    _row(2012, "BMW", "3 Series", "320d", "Sedan", "Headlight", "High Beam", "H7"),
    _row(2012, "BMW", "3 Series", "320d", "Sedan", "Fog", "Fog Lamps", "H8"),
    # Halogen or xenon depending on headlamp fitted
    _row(2012, "BMW", "3 Series", "330i", "Sedan", "Headlight", "Low Beam", "H7", "Halogen"),
    _row(2012, "BMW", "3 Series", "330i", "Sedan", "Headlight", "Low Beam", "D1S", "Xenon"),
    # Several halogen options
    _row(2012, "AUDI", "A4", "2.0 TDI", "Avant", "Headlight", "Low Beam", "H7"),
    _row(2012, "AUDI", "A4", "2.0 TDI", "Avant", "Headlight", "Low Beam", "H11"),
    _row(2012, "AUDI", "A4", "2.0 TDI", "Avant", "Headlight", "Low Beam", "H8"),
    # Missing model type; interior lamps are never offered
    _row(2015, "TOYOTA", "Corolla", None, "Hatchback", "Headlight", "Low Beam", "HB3/9005"),
    _row(2015, "TOYOTA", "Corolla", None, "Hatchback", "Interior", "Dome Light", "C5W"),
    _row(2015, "TOYOTA", "Auris", "1.6", "Hatchback", "Headlight", "High Beam", "HB3"),
]


def sample_answer(category: Category, filters: dict) -> list:
    """Answer a catalog query from SAMPLE_ROWS, shaped like LocalCatalog output."""

    def matches(r):
        if "year" in filters and r["model_year"] != filters["year"]:
            return False
        if "brand" in filters and r["brand"] != filters["brand"]:
            return False
        if "model" in filters and r["model_name"] != filters["model"]:
            return False
        if "model_type" in filters and r["model_type_name"] != filters["model_type"]:
            return False
        if "body_type" in filters and r["body_type"] != filters["body_type"]:
            return False
        if "position_category" in filters and r["position_category"] != filters["position_category"]:
            return False
        if "position" in filters and r["position"] != filters["position"]:
            return False
        return True

    rows = [r for r in SAMPLE_ROWS if matches(r)]
    if category == Category.YEARS:
        return sorted({r["model_year"] for r in rows}, reverse=True)
    if category == Category.BRANDS:
        return sorted({r["brand"] for r in rows})
    if category == Category.MODELS:
        return sorted({r["model_name"] for r in rows})
    if category == Category.MODIFICATIONS:
        return list(dict.fromkeys(Modification(r["model_type_name"], r["body_type"]) for r in rows))
    if category == Category.POSITIONS:
        return list(
            dict.fromkeys(
                Position(r["position_category"], r["position"])
                for r in rows
                if r["position"].lower() in LAMP_POSITIONS
            )
        )
    return list(dict.fromkeys(BulbCandidate(r["bulb_type"], r["technology"]) for r in rows))


class FakeCatalog(CatalogGateway):
    """In-memory catalog that records calls and can hold or fail queries."""

    def __init__(self):
        self.calls: list[tuple[Category, dict]] = []
        self.gates: dict[Category, asyncio.Event] = {}
        self.failing: set[Category] = set()
        self.stubborn = False  # keep going after cancellation, like a request already on the wire

    def hold(self, category: Category) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[category] = gate
        return gate

    def calls_for(self, category: Category) -> list[dict]:
        return [f for c, f in self.calls if c == category]

    async def query(self, category: Category, filters: dict) -> list:
        self.calls.append((category, dict(filters)))
        gate = self.gates.get(category)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                if not self.stubborn:
                    raise
                await gate.wait()
        if category in self.failing:
            raise RuntimeError("catalog unavailable")
        return sample_answer(category, filters)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest_asyncio.fixture
async def temp_db(tmp_path):
    """Use a temp database so tests never touch the real catalog."""
    db_mod._db = None
    temp_path = tmp_path / "test.db"
    with mock.patch.object(db_mod, "DB_PATH", temp_path):
        yield temp_path
        await close_db()


@pytest_asyncio.fixture
async def seeded_db(temp_db):
    """Temp database loaded with SAMPLE_ROWS."""
    await insert_fitment_rows(SAMPLE_ROWS)
    return temp_db
