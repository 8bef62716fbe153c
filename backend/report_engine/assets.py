"""
Local assets for report rendering

The organization logo is resolved through a LogoResolver so the renderer
never touches the filesystem directly. Image bytes (logo, photos, image
documents) are validated here before they reach the canvas.
"""

import base64
import binascii
import io
import logging
import os
from typing import Iterable, List, Optional, Protocol

from reportlab.lib.utils import ImageReader

logger = logging.getLogger(__name__)

# os.pathsep-separated list of candidate logo files, first existing wins
DEFAULT_LOGO_CANDIDATES = [
    "assets/gharpan-logo.png",
    "assets/logo.png",
    "static/logo.png",
]
LOGO_PATHS = [p for p in os.getenv("GHARPAN_LOGO_PATHS", "").split(os.pathsep) if p] or DEFAULT_LOGO_CANDIDATES


class LogoResolver(Protocol):
    def resolve_logo(self) -> Optional[bytes]:
        ...


class FileLogoResolver:
    """Probe candidate paths in order and return the first file that exists."""

    def __init__(self, candidates: Optional[Iterable[str]] = None):
        self.candidates: List[str] = list(candidates if candidates is not None else LOGO_PATHS)

    def resolve_logo(self) -> Optional[bytes]:
        for path in self.candidates:
            if not os.path.isfile(path):
                continue
            try:
                with open(path, "rb") as f:
                    return f.read()
            except OSError as e:
                logger.warning(f"Logo file {path} unreadable: {e}")
        logger.info("No logo file found, using text wordmark")
        return None


class BrandingLogoResolver:
    """Base64 logo from the settings table, else defer to the fallback resolver."""

    def __init__(self, branding: dict, fallback: Optional[LogoResolver] = None):
        self.branding = branding
        self.fallback = fallback

    def resolve_logo(self) -> Optional[bytes]:
        data = self.branding.get("logo_data")
        if data:
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                logger.warning(f"Stored branding logo is not valid base64: {e}")
        if self.fallback:
            return self.fallback.resolve_logo()
        return None


class StaticLogoResolver:
    def __init__(self, data: Optional[bytes] = None):
        self.data = data

    def resolve_logo(self) -> Optional[bytes]:
        return self.data


def load_image(data: Optional[bytes], label: str = "image") -> Optional[ImageReader]:
    """ImageReader for the bytes, or None if they don't decode as an image."""
    if not data:
        return None
    try:
        reader = ImageReader(io.BytesIO(data))
        reader.getSize()
        return reader
    except Exception as e:
        logger.warning(f"Could not decode {label}: {e}")
        return None
