"""Stock timing and valuation signal engine."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("stock-signals")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when output schema changes materially (new fields, renamed fields, structure changes)
# v1: Timing signals (trend, momentum, stretch) and valuation quadrants
# v2: Added price_tag, income/balance-sheet checks and quadrant positions
SCHEMA_VERSION = "2"
