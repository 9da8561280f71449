"""
Fitment options API route - thin data-access endpoint over the catalog.

GET /fitment/options?level=...&year=...&brand=...&model=...
    &modelType=...&bodyType=...&positionCategory=...&position=...

Returns the distinct values of the requested level. Missing upstream
parameters yield an empty list rather than an error. Responses are marked
cacheable for downstream HTTP caches; the endpoint itself keeps no cache.
"""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from bulbfit import db
from bulbfit.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fitment", tags=["fitment"])

LEVELS = ("years", "brands", "models", "mods", "positions", "bulbsByPosition")


def cached_json(data, max_age: int | None = None) -> JSONResponse:
    """JSON response with a public Cache-Control header."""
    max_age = settings.options_cache_max_age if max_age is None else max_age
    return JSONResponse(
        content=data,
        headers={
            "Cache-Control": (
                f"public, max-age={max_age}, s-maxage={max_age}, "
                f"stale-while-revalidate={settings.stale_while_revalidate}"
            ),
        },
    )


@router.get("/options")
async def fitment_options(
    level: str = Query("years", description="One of: " + ", ".join(LEVELS)),
    year: int | None = Query(None),
    brand: str | None = Query(None),
    model: str | None = Query(None),
    modelType: str | None = Query(None),
    bodyType: str | None = Query(None),
    positionCategory: str | None = Query(None),
    position: str | None = Query(None),
):
    """Distinct options for one selection level."""
    if level not in LEVELS:
        raise HTTPException(status_code=400, detail="invalid level")

    if level == "years":
        return cached_json(await db.get_years(), settings.years_cache_max_age)

    if level == "brands":
        if not year:
            return cached_json([])
        return cached_json(await db.get_brands(year))

    if level == "models":
        if not year or not brand:
            return cached_json([])
        return cached_json(await db.get_models(year, brand))

    if level == "mods":
        if not year or not brand or not model:
            return cached_json([])
        return cached_json(await db.get_modifications(year, brand, model))

    if level == "positions":
        if not year or not brand or not model:
            return cached_json([])
        return cached_json(await db.get_positions(year, brand, model, modelType, bodyType))

    if not year or not brand or not model or not position:
        return cached_json([])
    rows = await db.get_bulbs(year, brand, model, modelType, bodyType, positionCategory, position)
    return cached_json(rows)
