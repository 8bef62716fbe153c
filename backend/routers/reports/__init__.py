"""
Reports Router Package

Combines all report-related routers, mounted under /api/residents:
- export: Bulk spreadsheet export
- stats: Summary counts
- resident: Single resident PDF/Excel download, preview and print

Fixed paths (/export, /stats/summary) are registered before the
/{resident_id} routes so they are never captured as an id.
"""

from fastapi import APIRouter

from .export import router as export_router
from .stats import router as stats_router
from .resident import router as resident_router

router = APIRouter()

router.include_router(export_router, tags=["reports-export"])
router.include_router(stats_router, tags=["reports-stats"])
router.include_router(resident_router, tags=["reports-resident"])
