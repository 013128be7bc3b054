"""
Pricing engine for decorated apparel quotes.

A quote is built from the decoration method, the order quantity, the number of
colours used at each print location and the number of locations. Per-product
overrides come from the product's metafields; every setting falls back to its
own default when the override is absent or unusable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

DECORATION_METHODS = ("screenprint", "embroidery")

DEFAULT_BASE_ITEM_PRICE = {
    "screenprint": 15.87,
    "embroidery": 19.99,
}
DEFAULT_BASE_SETUP_FEE = 50.0
DEFAULT_EXTRA_COLOR_FEE = 2.04
DEFAULT_EXTRA_SETUP_PER_COLOR = 25.0
DEFAULT_EXTRA_SETUP_PER_LOCATION = 50.0
DEFAULT_EXTRA_ITEM_PER_LOCATION = 8.08

# Metafield keys that are shared by both decoration methods
SHARED_PRICING_KEYS = (
    "extra_color_fee",
    "extra_setup_per_color",
    "extra_setup_per_location",
    "extra_item_per_location",
)


class ValidationError(ValueError):
    """Raised when a pricing request cannot be quoted as given."""


@dataclass(frozen=True)
class PricingResult:
    each_item: float
    setup_fee: float
    total: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "eachItem": self.each_item,
            "setupFee": self.setup_fee,
            "total": self.total,
        }


def _to_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def round_money(value: float) -> float:
    """Round to 2 decimal places the way JavaScript's ``toFixed(2)`` does.

    The exact binary value of the float is rounded half-up, so ``1.005``
    (stored as 1.00499999...) becomes ``1.0``.
    """
    quantized = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(quantized)


def pricing_keys(decoration_method: str) -> tuple:
    """Metafield keys that can override pricing for a decoration method."""
    return (
        f"base_item_price_{decoration_method}",
        f"base_setup_fee_{decoration_method}",
    ) + SHARED_PRICING_KEYS


def metafields_to_config(metafields: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Flatten a Shopify metafield list into a ``{key: value}`` mapping."""
    config = {}
    for metafield in metafields or []:
        key = metafield.get("key")
        if key:
            config[key] = metafield.get("value")
    return config


def resolve_setting(config: Optional[Mapping[str, Any]], key: str, default: float) -> float:
    """Return the override stored under key, or default when it is unusable."""
    if not config:
        return default
    raw = config.get(key)
    if raw is None or raw == "":
        return default
    value = _to_number(raw)
    if value is None:
        logger.debug("⚠️ Ignoring unparseable pricing value %s=%r", key, raw)
        return default
    return value


def validate_request(request: Mapping[str, Any]):
    """Check a pricing request and return its normalised fields.

    Raises ValidationError with a client-facing message.
    """
    if not isinstance(request, Mapping):
        raise ValidationError("Missing required parameters")

    decoration_method = request.get("decorationMethod")
    quantity = request.get("quantity")
    color_counts = request.get("colorCounts")
    location_count = request.get("locationCount")

    if (
        decoration_method in (None, "")
        or quantity in (None, "")
        or color_counts is None
        or location_count is None
    ):
        raise ValidationError("Missing required parameters")

    if decoration_method not in DECORATION_METHODS:
        raise ValidationError("Invalid decoration method")

    quantity_value = _to_number(quantity)
    if quantity_value is None or quantity_value <= 0:
        raise ValidationError("Invalid quantity")

    if not isinstance(color_counts, (list, tuple)):
        raise ValidationError("Color counts must be an array")

    location_value = _to_number(location_count)
    if location_value is None or location_value < 0:
        raise ValidationError("Invalid location count")

    return decoration_method, quantity_value, color_counts, location_value


def calculate_price(
    request: Mapping[str, Any],
    config: Optional[Mapping[str, Any]] = None,
) -> PricingResult:
    """Quote a decorated item order.

    ``request`` carries ``decorationMethod``, ``quantity``, ``colorCounts`` and
    ``locationCount`` as they arrive in the JSON body. ``config`` is an
    optional metafield mapping (see :func:`metafields_to_config`).

    Raises ValidationError before any arithmetic when the request is invalid.
    """
    decoration_method, quantity, color_counts, location_count = validate_request(request)

    base_item_price = resolve_setting(
        config,
        f"base_item_price_{decoration_method}",
        DEFAULT_BASE_ITEM_PRICE[decoration_method],
    )
    base_setup_fee = resolve_setting(
        config, f"base_setup_fee_{decoration_method}", DEFAULT_BASE_SETUP_FEE
    )
    extra_color_fee = resolve_setting(config, "extra_color_fee", DEFAULT_EXTRA_COLOR_FEE)
    extra_setup_per_color = resolve_setting(
        config, "extra_setup_per_color", DEFAULT_EXTRA_SETUP_PER_COLOR
    )
    extra_setup_per_location = resolve_setting(
        config, "extra_setup_per_location", DEFAULT_EXTRA_SETUP_PER_LOCATION
    )
    extra_item_per_location = resolve_setting(
        config, "extra_item_per_location", DEFAULT_EXTRA_ITEM_PER_LOCATION
    )

    # The first location is part of the base price
    extra_location_count = max(0, location_count - 1)

    # One colour per location is included; every location is treated alike
    total_extra_colors = 0
    additional_setup_fee = 0.0
    for color_count in color_counts:
        count = _to_number(color_count)
        if count is not None and count > 1:
            total_extra_colors += count - 1
            additional_setup_fee += (count - 1) * extra_setup_per_color

    additional_setup_fee += extra_location_count * extra_setup_per_location

    each_item = (
        base_item_price
        + extra_location_count * extra_item_per_location
        + total_extra_colors * extra_color_fee
    )
    each_item_total = each_item * quantity
    setup_fee = base_setup_fee + additional_setup_fee
    total = each_item_total + setup_fee

    logger.debug(
        "Quote %s qty=%s extra_colors=%s extra_locations=%s -> each=%.4f setup=%.4f total=%.4f",
        decoration_method,
        quantity,
        total_extra_colors,
        extra_location_count,
        each_item,
        setup_fee,
        total,
    )

    return PricingResult(
        each_item=round_money(each_item),
        setup_fee=round_money(setup_fee),
        total=round_money(total),
    )
