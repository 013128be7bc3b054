import os
import sys

# Ensure parent directory (backend) is on sys.path so we can import the backend modules
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.append(PARENT_DIR)

import pricing  # noqa: E402
import shopify_api  # noqa: E402

USAGE = (
    "Use: quote <method> <quantity> <location_count> <color_counts> [product_id]\n"
    "     metafields <product_id>"
)

DEFAULTS = {
    "extra_color_fee": pricing.DEFAULT_EXTRA_COLOR_FEE,
    "extra_setup_per_color": pricing.DEFAULT_EXTRA_SETUP_PER_COLOR,
    "extra_setup_per_location": pricing.DEFAULT_EXTRA_SETUP_PER_LOCATION,
    "extra_item_per_location": pricing.DEFAULT_EXTRA_ITEM_PER_LOCATION,
}


def parse_color_counts(value):
    """Parse a comma separated list such as ``3,2,1``."""
    return [int(part) for part in value.split(",") if part.strip()]


def default_for(key, method):
    if key.startswith("base_item_price_"):
        return pricing.DEFAULT_BASE_ITEM_PRICE[method]
    if key.startswith("base_setup_fee_"):
        return pricing.DEFAULT_BASE_SETUP_FEE
    return DEFAULTS[key]


def load_config(product_id):
    return pricing.metafields_to_config(shopify_api.get_product_metafields(product_id))


def quote(args):
    if len(args) < 4:
        print(f"❌ Missing arguments. {USAGE}", flush=True)
        return 1

    method, quantity, location_count, color_counts = args[:4]
    product_id = args[4] if len(args) > 4 else None

    try:
        counts = parse_color_counts(color_counts)
    except ValueError:
        print(f"❌ Invalid color counts: {color_counts}", flush=True)
        return 1

    config = None
    if product_id:
        try:
            config = load_config(product_id)
        except (shopify_api.ShopifyAPIError, ValueError) as e:
            print(f"⚠️ Could not load metafields for {product_id}, using defaults: {e}", flush=True)

    try:
        result = pricing.calculate_price({
            "decorationMethod": method,
            "quantity": quantity,
            "colorCounts": counts,
            "locationCount": location_count,
        }, config)
    except pricing.ValidationError as e:
        print(f"❌ {e}", flush=True)
        return 1

    print(f"💰 Quote for {quantity} x {method}", flush=True)
    print(f"   Each item: {result.each_item:.2f}", flush=True)
    print(f"   Setup fee: {result.setup_fee:.2f}", flush=True)
    print(f"   Total:     {result.total:.2f}", flush=True)
    return 0


def show_metafields(args):
    if not args:
        print(f"❌ Product ID required. {USAGE}", flush=True)
        return 1

    product_id = args[0]
    print(f"📋 Fetching pricing metafields for product ID: {product_id}", flush=True)
    try:
        config = load_config(product_id)
    except (shopify_api.ShopifyAPIError, ValueError) as e:
        print(f"❌ Failed to fetch metafields: {e}", flush=True)
        return 1

    for method in pricing.DECORATION_METHODS:
        print(f"\n{method}:", flush=True)
        for key in pricing.pricing_keys(method):
            value = pricing.resolve_setting(config, key, None)
            source = "metafield"
            if value is None:
                value = default_for(key, method)
                source = "default"
            print(f"   {key:<28} {value:>8.2f}  ({source})", flush=True)
    return 0


def main(argv=None):
    """Main function for Price Manager"""
    argv = sys.argv[1:] if argv is None else argv
    print("🚀 Price Manager - Decoration Pricing Tool", flush=True)
    print("=" * 50, flush=True)

    if not argv:
        print(f"❌ No command specified. {USAGE}", flush=True)
        return 1

    command = argv[0].lower()
    if command == "quote":
        return quote(argv[1:])
    if command == "metafields":
        return show_metafields(argv[1:])

    print(f"❌ Unknown command: {command}", flush=True)
    print("Available commands: quote, metafields", flush=True)
    return 1


if __name__ == "__main__":
    sys.exit(main())
