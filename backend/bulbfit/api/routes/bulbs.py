"""
Bulb product link lookup.
"""

from fastapi import APIRouter, Query

from bulbfit.data.bulb_links import normalize_bulb_key, resolve_bulb_url
from bulbfit.schemas.selection import BulbLinkResponse

router = APIRouter(prefix="/bulbs", tags=["bulbs"])


@router.get("/link", response_model=BulbLinkResponse)
async def bulb_link(part_number: str = Query(..., min_length=1, description="Bulb type, e.g. H7 or HB3/9005")):
    """Resolve a bulb type to its product page; link_missing when none is registered."""
    url = resolve_bulb_url(part_number)
    return BulbLinkResponse(
        part_number=normalize_bulb_key(part_number),
        link_url=url,
        link_missing=url is None,
    )
