"""
Bulk Export Router - Filtered resident list as a spreadsheet
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
import logging

from database import get_db
from records import find_residents
from schemas import ResidentFilters
from report_engine.spreadsheet import EXPORT_COLUMNS, residents_workbook
from .responses import XLSX_MEDIA_TYPE, file_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/export")
async def export_residents(
    filters: ResidentFilters = Depends(),
    db: Session = Depends(get_db),
):
    residents = find_residents(db, filters)
    content = residents_workbook(residents, EXPORT_COLUMNS, "Residents")
    logger.info(f"Exported {len(residents)} resident(s)")

    filename = f"residents_export_{datetime.now().date().isoformat()}.xlsx"
    return file_response(content, XLSX_MEDIA_TYPE, filename)
