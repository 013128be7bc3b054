"""
Product configuration read and setup-wizard writes, stored as product metafields.
"""

import json
import logging

import shopify_api

logger = logging.getLogger(__name__)

NAMESPACE = "custom"


def get_product_configuration(product_id):
    """Group the product's ``custom.decoration_*`` metafields by decoration method."""
    configuration = {
        "decorationMethods": {},
        "pricingTiers": {},
    }
    for metafield in shopify_api.get_product_metafields(product_id):
        key = metafield.get("key", "")
        if metafield.get("namespace") != NAMESPACE or not key.startswith("decoration_"):
            continue
        method = key[len("decoration_"):]
        configuration["decorationMethods"].setdefault(method, {})[key] = metafield.get("value")
    return configuration


def build_setup_metafields(template_id, print_areas=None, pricing=None):
    """Return the metafields the setup wizard stores for a product."""
    metafields = [{
        "namespace": NAMESPACE,
        "key": "product_template",
        "value": str(template_id),
        "type": "single_line_text_field",
    }]

    for area, area_config in (print_areas or {}).items():
        metafields.append({
            "namespace": NAMESPACE,
            "key": f"print_area_{area}",
            "value": json.dumps(area_config),
            "type": "json",
        })

    for method, method_pricing in (pricing or {}).items():
        metafields.append({
            "namespace": NAMESPACE,
            "key": f"pricing_{method}",
            "value": json.dumps(method_pricing),
            "type": "json",
        })

    return metafields


def setup_product(product_id, template_id, print_areas=None, pricing=None):
    """Write setup metafields to a product.

    A failed metafield does not stop the remaining ones; the keys that could
    not be saved are returned under ``failed``.
    """
    created = []
    failed = []
    for metafield in build_setup_metafields(template_id, print_areas, pricing):
        try:
            shopify_api.create_product_metafield(product_id, metafield)
            created.append(metafield["key"])
        except shopify_api.ShopifyAPIError as e:
            logger.error("❌ Failed to create metafield %s: %s", metafield["key"], e)
            failed.append(metafield["key"])

    logger.info("✅ Product %s configured (%s saved, %s failed)", product_id, len(created), len(failed))
    return {"created": created, "failed": failed}
