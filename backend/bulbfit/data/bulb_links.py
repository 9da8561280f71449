"""
Static bulb type -> product page lookup.

Keys are normalized bulb types (uppercase, no whitespace). Combined codes such
as "HB3/9005" are registered as-is and also resolve through either half.
"""

_PRODUCT_BASE = "https://www.xenon.bg/product"

BULB_TYPE_TO_URL: dict[str, str] = {
    # Halogen H-series
    "H1": f"{_PRODUCT_BASE}/led-krushki-h1-raytech-turbo-130w-6000k",
    "H3": f"{_PRODUCT_BASE}/led-krushki-h3-raytech-90w-6000k-canbus",
    "H4": f"{_PRODUCT_BASE}/led-krushki-h4-raytech-90w-6000k",
    "H7": f"{_PRODUCT_BASE}/led-krushki-h7-raytech-turbo-130w-6000k",
    "H8": f"{_PRODUCT_BASE}/led-krushki-h8-raytech-turbo-130w-6000k-1",
    "H9": f"{_PRODUCT_BASE}/led-krushki-h9-raytech-turbo-130w-6000k-1",
    "H11": f"{_PRODUCT_BASE}/led-krushki-h11-raytech-turbo-130w-6000k",
    "H16": f"{_PRODUCT_BASE}/led-krushki-h16-raytech-turbo-130w-6000k-1",
    # HB series, usually stored as HB3/9005 and HB4/9006
    "HB3/9005": f"{_PRODUCT_BASE}/led-krushki-hb3-raytech-turbo-130w-6000k",
    "HB4/9006": f"{_PRODUCT_BASE}/led-krushki-hb4-raytech-turbo-130w-6000k",
    "HB3": f"{_PRODUCT_BASE}/led-krushki-hb3-raytech-turbo-130w-6000k",
    "9005": f"{_PRODUCT_BASE}/led-krushki-hb3-raytech-turbo-130w-6000k",
    "HB4": f"{_PRODUCT_BASE}/led-krushki-hb4-raytech-turbo-130w-6000k",
    "9006": f"{_PRODUCT_BASE}/led-krushki-hb4-raytech-turbo-130w-6000k",
    # D-series (xenon replacements)
    "D1S": f"{_PRODUCT_BASE}/led-krushki-d1s-raytech-70w-5500k",
    "D2S": f"{_PRODUCT_BASE}/led-krushki-d2s-raytech-70w-5500k-canbus",
    "D3S": f"{_PRODUCT_BASE}/led-krushki-d3s-raytech-70w-5500k",
    "D4S": f"{_PRODUCT_BASE}/led-krushki-d4s-raytech-70w-5500k",
    "D5S": f"{_PRODUCT_BASE}/led-krushki-d5s-raytech-50w-5500k",
    "D8S": f"{_PRODUCT_BASE}/led-krushki-d8s-raytech-50w-5500k",
}


def normalize_bulb_key(raw: str) -> str:
    """
    Normalize a bulb type for lookup: uppercase, all whitespace removed.
    Examples:
        " h7 "         -> "H7"
        "HB3 / 9005"   -> "HB3/9005"
    """
    if not raw:
        return ""
    return "".join(raw.upper().split())


def resolve_bulb_url(bulb_type: str) -> str | None:
    """Product URL for a bulb type, or None when no page is registered."""
    key = normalize_bulb_key(bulb_type)
    if not key:
        return None

    url = BULB_TYPE_TO_URL.get(key)
    if url:
        return url

    # Combined alias: try the left half, then the right
    if "/" in key:
        left, right = key.split("/")[:2]
        if left and left in BULB_TYPE_TO_URL:
            return BULB_TYPE_TO_URL[left]
        if right and right in BULB_TYPE_TO_URL:
            return BULB_TYPE_TO_URL[right]

    return None
