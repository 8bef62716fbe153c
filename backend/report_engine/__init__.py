"""
Report Engine Package

Handles resident report generation: PDF reports in four templates and
spreadsheet exports. Separated from routers for maintainability.

Components:
- branding_config: Default branding settings and helpers
- layout: Cursor-driven page layout over buffered pages
- templates: Declarative section lists per template
- renderers: ReportRenderer, interprets a template for one resident
- spreadsheet: Row projection and .xlsx writing
- fetcher: Blob store fetches with a deadline
- assets: Logo resolvers and image validation
"""

from .branding_config import DEFAULT_BRANDING, get_branding
from .templates import TEMPLATE_NAMES, UnsupportedTemplate, get_template
from .renderers import ReportRenderer, ReportDocument
from .spreadsheet import RESIDENT_COLUMNS, EXPORT_COLUMNS, compose_address, project_row, build_workbook
from .fetcher import AssetUnavailable, BlobFetcher, FetchPolicy
from .assets import BrandingLogoResolver, FileLogoResolver, StaticLogoResolver

__all__ = [
    'DEFAULT_BRANDING',
    'TEMPLATE_NAMES',
    'RESIDENT_COLUMNS',
    'EXPORT_COLUMNS',
    'get_branding',
    'get_template',
    'UnsupportedTemplate',
    'ReportRenderer',
    'ReportDocument',
    'compose_address',
    'project_row',
    'build_workbook',
    'AssetUnavailable',
    'BlobFetcher',
    'FetchPolicy',
    'BrandingLogoResolver',
    'FileLogoResolver',
    'StaticLogoResolver',
]
