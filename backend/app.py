from flask import Flask, jsonify, request
from datetime import datetime, timezone
import json
import logging

import config
import metaobjects
import pricing
import product_setup
import shopify_api

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)


@app.before_request
def log_request():
    logger.info("📥 %s %s", request.method, request.path)


# Add CORS headers
@app.after_request
def after_request(response):
    response.headers.add('Access-Control-Allow-Origin', '*')
    response.headers.add('Access-Control-Allow-Headers', 'Content-Type,Authorization')
    response.headers.add('Access-Control-Allow-Methods', 'GET,PUT,POST,DELETE,OPTIONS')
    return response


def json_body():
    """Return the JSON request body when it is an object, otherwise an empty dict."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return data


@app.route('/')
def index():
    return "Shopify Product Configurator App is running!"


@app.route('/api/health')
def api_health():
    return jsonify({
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


# --- Product configuration ---------------------------------------------------

@app.route('/api/products/<product_id>/config')
def api_product_config(product_id):
    try:
        return jsonify(product_setup.get_product_configuration(product_id))
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Product configuration error: %s", e)
        return jsonify({"error": "Failed to fetch product configuration"}), 500


def load_pricing_config(product_id):
    """Fetch pricing overrides for a product; None when they cannot be loaded."""
    if not product_id:
        return None
    try:
        metafields = shopify_api.get_product_metafields(product_id)
    except (shopify_api.ShopifyAPIError, ValueError) as e:
        logger.warning("⚠️ Could not load pricing metafields for product %s, using defaults: %s", product_id, e)
        return None
    return pricing.metafields_to_config(metafields)


@app.route('/api/price/calculate', methods=['POST'])
def api_price_calculate():
    data = json_body()
    try:
        pricing.validate_request(data)
        pricing_config = load_pricing_config(data.get('productId'))
        result = pricing.calculate_price(data, pricing_config)
    except pricing.ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        logger.exception("💥 Pricing calculation error")
        return jsonify({"error": "Failed to calculate pricing"}), 500

    return jsonify(result.to_dict())


# --- Designs -----------------------------------------------------------------

def _parse_design_data(raw):
    if isinstance(raw, str):
        parsed = json.loads(raw)
    else:
        parsed = raw
    if not isinstance(parsed, dict):
        raise ValueError("Design data must be an object")
    return parsed


@app.route('/api/designs')
def api_designs():
    try:
        return jsonify(metaobjects.list_records(metaobjects.DESIGN_TYPE))
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Designs retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch designs"}), 500


@app.route('/api/designs/<design_id>')
def api_design_detail(design_id):
    try:
        design = metaobjects.get_record(design_id, metaobjects.DESIGN_TYPE)
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Design retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch design"}), 500

    if design is None:
        return jsonify({"error": "Design not found"}), 404
    return jsonify(design)


@app.route('/api/designs', methods=['POST'])
def api_design_create():
    data = json_body()
    if not data.get('designData'):
        return jsonify({"error": "Design data is required"}), 400

    try:
        design_data = _parse_design_data(data['designData'])
    except ValueError as e:
        return jsonify({"error": f"Invalid design data: {e}"}), 400

    try:
        design = metaobjects.create_design(design_data)
    except metaobjects.MetaobjectError as e:
        return jsonify({"error": "Failed to create design", "details": e.user_errors}), 400
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Design save error: %s", e)
        return jsonify({"error": "Failed to save design"}), 500

    return jsonify(design), 201


@app.route('/api/designs/<design_id>', methods=['PUT'])
def api_design_update(design_id):
    data = json_body()
    if not data.get('designData'):
        return jsonify({"error": "Design data is required"}), 400

    try:
        design_data = _parse_design_data(data['designData'])
    except ValueError as e:
        return jsonify({"error": f"Invalid design data: {e}"}), 400

    try:
        found = metaobjects.update_record(design_id, metaobjects.DESIGN_TYPE, design_data)
    except metaobjects.MetaobjectError as e:
        return jsonify({"error": "Failed to update design", "details": e.user_errors}), 400
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Design update error: %s", e)
        return jsonify({"error": "Failed to update design"}), 500

    if not found:
        return jsonify({"error": "Design not found"}), 404

    return jsonify({
        "id": design_id,
        **design_data,
        "updated": datetime.now(timezone.utc).isoformat(),
    })


# --- Admin dashboard ---------------------------------------------------------

@app.route('/api/admin/designs/pending')
def api_admin_pending_designs():
    try:
        return jsonify(metaobjects.list_pending_designs())
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Pending designs retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch pending designs"}), 500


@app.route('/api/admin/designs/<design_id>/approve', methods=['PUT'])
def api_admin_approve_design(design_id):
    try:
        found = metaobjects.approve_design(design_id)
    except metaobjects.MetaobjectError as e:
        return jsonify({"error": "Failed to approve design", "details": e.user_errors}), 400
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Design approval error: %s", e)
        return jsonify({"error": "Failed to approve design"}), 500

    if not found:
        return jsonify({"error": "Design not found"}), 404
    return jsonify({
        "success": True,
        "message": f"Design {design_id} approved successfully",
    })


@app.route('/api/admin/designs/<design_id>/reject', methods=['PUT'])
def api_admin_reject_design(design_id):
    data = json_body()
    reason = data.get('reason')
    try:
        found = metaobjects.reject_design(design_id, reason)
    except metaobjects.MetaobjectError as e:
        return jsonify({"error": "Failed to reject design", "details": e.user_errors}), 400
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Design rejection error: %s", e)
        return jsonify({"error": "Failed to reject design"}), 500

    if not found:
        return jsonify({"error": "Design not found"}), 404
    return jsonify({
        "success": True,
        "message": f"Design {design_id} rejected successfully",
        "reason": reason,
    })


def format_order(order):
    customer = order.get('customer') or {}
    name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    return {
        'id': order.get('name'),
        'customer': {
            'name': name,
            'email': customer.get('email'),
        },
        'date': order.get('created_at'),
        'status': order.get('financial_status'),
        'total': order.get('total_price'),
    }


@app.route('/api/admin/orders')
def api_admin_orders():
    try:
        orders = shopify_api.get_orders(limit=50)
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Orders retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch orders"}), 500
    return jsonify([format_order(order) for order in orders])


@app.route('/api/admin/products')
def api_admin_products():
    try:
        products = shopify_api.get_products(limit=100)
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Products retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch products"}), 500

    # Format products for the setup wizard picker
    formatted_products = []
    for product in products:
        image = product.get('image') or {}
        formatted_products.append({
            'id': product['id'],
            'title': product.get('title', 'Unknown Product'),
            'handle': product.get('handle', ''),
            'image': image.get('src', ''),
        })
    return jsonify(formatted_products)


@app.route('/api/admin/templates')
def api_admin_templates():
    try:
        return jsonify(metaobjects.list_records(metaobjects.TEMPLATE_TYPE))
    except shopify_api.ShopifyAPIError as e:
        logger.error("💥 Templates retrieval error: %s", e)
        return jsonify({"error": "Failed to fetch templates"}), 500


@app.route('/api/admin/products/<product_id>/setup', methods=['POST'])
def api_admin_product_setup(product_id):
    data = json_body()
    template_id = data.get('templateId')
    if not template_id:
        return jsonify({"error": "Template ID is required"}), 400

    try:
        result = product_setup.setup_product(
            product_id,
            template_id,
            print_areas=data.get('printAreas'),
            pricing=data.get('pricing'),
        )
    except Exception:
        logger.exception("💥 Product setup error")
        return jsonify({"error": "Failed to setup product"}), 500

    return jsonify({
        "success": True,
        "message": f"Product {product_id} configured successfully",
        "productId": product_id,
        "failed": result["failed"],
    })


if __name__ == '__main__':
    logger.info("Server is running on port %s", config.PORT)
    logger.info("Host: %s", config.HOST)
    app.run(host="0.0.0.0", port=config.PORT, debug=False)
