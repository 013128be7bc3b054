"""
Design and product template records stored as Shopify metaobjects.

Records are returned as flat dicts: ``{"id": <handle>, <field key>: <value>}``.
"""

import json
import logging
import random
import time

import shopify_api

logger = logging.getLogger(__name__)

DESIGN_TYPE = "design"
TEMPLATE_TYPE = "product_template"


class MetaobjectError(shopify_api.ShopifyAPIError):
    """Shopify rejected a metaobject mutation with userErrors."""

    def __init__(self, message, user_errors):
        super().__init__(message, status_code=400)
        self.user_errors = user_errors


LIST_QUERY = """
query listMetaobjects($type: String!, $first: Int!, $query: String) {
    metaobjects(type: $type, first: $first, query: $query) {
        nodes {
            id
            handle
            fields {
                key
                value
            }
        }
    }
}
"""

GET_QUERY = """
query getMetaobject($handle: MetaobjectHandleInput!) {
    metaobjectByHandle(handle: $handle) {
        id
        handle
        fields {
            key
            value
        }
    }
}
"""

CREATE_MUTATION = """
mutation metaobjectCreate($metaobject: MetaobjectCreateInput!) {
    metaobjectCreate(metaobject: $metaobject) {
        metaobject {
            id
            handle
        }
        userErrors {
            field
            message
        }
    }
}
"""

UPDATE_MUTATION = """
mutation metaobjectUpdate($id: ID!, $metaobject: MetaobjectUpdateInput!) {
    metaobjectUpdate(id: $id, metaobject: $metaobject) {
        metaobject {
            id
            handle
        }
        userErrors {
            field
            message
        }
    }
}
"""


def node_to_record(node):
    """Flatten a metaobject node into a record keyed by its handle."""
    record = {"id": node.get("handle")}
    for field in node.get("fields", []):
        record[field["key"]] = field["value"]
    return record


def to_fields(data):
    """Turn a dict into metaobject field inputs; non-string values are JSON encoded."""
    fields = []
    for key, value in data.items():
        fields.append({
            "key": key,
            "value": value if isinstance(value, str) else json.dumps(value),
        })
    return fields


def _raise_user_errors(payload, action):
    user_errors = (payload or {}).get("userErrors") or []
    if user_errors:
        logger.warning("❌ Failed to %s: %s", action, user_errors)
        raise MetaobjectError(f"Failed to {action}", user_errors)


def list_records(metaobject_type, query=None, first=100):
    variables = {"type": metaobject_type, "first": first}
    if query:
        variables["query"] = query
    data = shopify_api.graphql(LIST_QUERY, variables)
    nodes = (data.get("metaobjects") or {}).get("nodes", [])
    return [node_to_record(node) for node in nodes]


def list_pending_designs():
    return list_records(DESIGN_TYPE, query="status:pending")


def _get_node(handle, metaobject_type):
    data = shopify_api.graphql(
        GET_QUERY, {"handle": {"handle": handle, "type": metaobject_type}}
    )
    return data.get("metaobjectByHandle")


def get_record(handle, metaobject_type=DESIGN_TYPE):
    """Return a single record, or None when no metaobject has that handle."""
    node = _get_node(handle, metaobject_type)
    if not node:
        return None
    return node_to_record(node)


def new_design_handle():
    return f"design-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def create_design(design_data):
    """Save design data as a new ``design`` metaobject and return the record."""
    handle = new_design_handle()
    data = shopify_api.graphql(CREATE_MUTATION, {
        "metaobject": {
            "type": DESIGN_TYPE,
            "handle": handle,
            "fields": to_fields(design_data),
        }
    })
    payload = data.get("metaobjectCreate") or {}
    _raise_user_errors(payload, "create design")

    created_handle = (payload.get("metaobject") or {}).get("handle", handle)
    logger.info("✅ Created design %s", created_handle)
    return {"id": created_handle, **design_data}


def update_record(handle, metaobject_type, data):
    """Update fields on the metaobject with the given handle.

    Returns False when the handle does not exist.
    """
    node = _get_node(handle, metaobject_type)
    if not node:
        return False

    result = shopify_api.graphql(UPDATE_MUTATION, {
        "id": node["id"],
        "metaobject": {"fields": to_fields(data)},
    })
    _raise_user_errors(result.get("metaobjectUpdate"), f"update {metaobject_type}")
    logger.info("✅ Updated %s %s", metaobject_type, handle)
    return True


def approve_design(handle):
    return update_record(handle, DESIGN_TYPE, {"status": "approved"})


def reject_design(handle, reason=None):
    data = {"status": "rejected"}
    if reason:
        data["rejection_reason"] = reason
    return update_record(handle, DESIGN_TYPE, data)
