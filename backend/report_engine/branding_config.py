"""
Branding Configuration for Gharpan Reports

Defines default branding settings and helpers to load deployment-specific
branding. Overrides are stored in the settings table under the
"organization" and "branding" categories.
"""

import logging
import re

from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import Optional

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')
COLOR_KEYS = ("primary_color", "light_color", "header_text_color", "field_bg_color",
              "border_color", "text_color", "muted_color")

# =============================================================================
# DEFAULT BRANDING
# Fallback values when the deployment hasn't configured a setting
# =============================================================================

DEFAULT_BRANDING = {
    # Identity
    "organization_name": "Gharpan Dashboard",
    "subtitle_lines": [
        "Overview of all rehabilitation activities and records.",
        "Residential Care & Rehabilitation Center",
    ],
    "footer_title": "Gharpan Organization - Residential Care & Rehabilitation Center",
    "wordmark": ["GHARPAN", "LOGO"],

    # Logo (base64, optional; filesystem candidates are probed otherwise)
    "logo_data": None,

    # Colors
    "primary_color": "#0A400C",   # Header band, section text, borders
    "light_color": "#E8F5E8",     # Section banners, footer band
    "header_text_color": "#E0F2E0",
    "field_bg_color": "#FEFCF2",
    "border_color": "#E5E7EB",
    "text_color": "#374151",
    "muted_color": "#6B7280",

    # Watermark (preview renders)
    "watermark_opacity": 0.08,
}


# =============================================================================
# BRANDING LOADER
# =============================================================================

def get_branding(db: Session) -> dict:
    """
    Load branding configuration from the settings table.
    Merges stored values with defaults for any missing keys.
    """
    branding = dict(DEFAULT_BRANDING)

    branding["organization_name"] = _get_setting(db, "organization", "name", branding["organization_name"])
    branding["footer_title"] = _get_setting(db, "organization", "footer_title", branding["footer_title"])

    subtitle = _get_setting(db, "organization", "subtitle", None)
    if subtitle:
        branding["subtitle_lines"] = [line for line in subtitle.splitlines() if line.strip()]

    wordmark = _get_setting(db, "branding", "wordmark", None)
    if wordmark:
        branding["wordmark"] = wordmark.split()

    branding["logo_data"] = _get_setting(db, "branding", "logo", None)

    for key in COLOR_KEYS:
        branding[key] = _get_color(db, key, branding[key])

    branding["watermark_opacity"] = _get_setting_float(db, "branding", "watermark_opacity", branding["watermark_opacity"])

    return branding


# =============================================================================
# PRIVATE HELPERS
# =============================================================================

def _get_setting(db: Session, category: str, key: str, default) -> Optional[str]:
    """Get string setting from database."""
    result = db.execute(
        text("SELECT value FROM settings WHERE category = :cat AND key = :key"),
        {"cat": category, "key": key}
    ).fetchone()
    return result[0] if result and result[0] else default


def _get_setting_float(db: Session, category: str, key: str, default: float) -> float:
    """Get float setting from database."""
    result = _get_setting(db, category, key, None)
    if result is None:
        return default
    try:
        return float(result)
    except (ValueError, TypeError):
        return default


def _get_color(db: Session, key: str, default: str) -> str:
    """#RRGGBB colour setting; anything else keeps the default"""
    value = _get_setting(db, "branding", key, default).strip()
    if HEX_COLOR_RE.match(value):
        return value
    logger.warning(f"Ignoring branding {key}={value!r}, expected #RRGGBB")
    return default
