#!/usr/bin/env python3
"""
Configuration for the product configurator backend.

Store credentials and server settings are sourced from environment variables
so that nothing sensitive lives in version control. A local `.env` file in the
project root is loaded automatically when present.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


_BASE_DIR = Path(__file__).resolve().parent
_ENV_PATH = _BASE_DIR.parent / ".env"

# Load environment variables from `.env` if available (development convenience)
load_dotenv(_ENV_PATH)

# Shopify Store Configuration
STORE_DOMAIN = os.environ.get("SHOPIFY_STORE_DOMAIN", "")
API_VERSION = os.environ.get("SHOPIFY_API_VERSION", "2025-07")
ACCESS_TOKEN = os.environ.get("SHOPIFY_ACCESS_TOKEN", "")

# Public host of this app, used in log output on startup
HOST = os.environ.get("HOST", "")
PORT = int(os.environ.get("PORT", "3000"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Outbound request behaviour
MAX_RETRIES = int(os.environ.get("SHOPIFY_MAX_RETRIES", "3"))
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "30"))

# Common headers for API requests
SHOPIFY_HEADERS = {
    "Content-Type": "application/json",
    "X-Shopify-Access-Token": ACCESS_TOKEN or "",
}
