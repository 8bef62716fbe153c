"""
Resident Report Router - Single resident PDF/Excel download, preview and print
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import datetime
import logging

from database import get_db
from records import ResidentSnapshot, find_resident_by_id, is_valid_object_id
from report_engine.assets import BrandingLogoResolver, FileLogoResolver
from report_engine.branding_config import get_branding
from report_engine.fetcher import BlobFetcher, get_blob_fetcher
from report_engine.renderers import ReportRenderer
from report_engine.spreadsheet import RESIDENT_COLUMNS, residents_workbook
from report_engine.templates import UnsupportedTemplate, get_template
from .responses import PDF_MEDIA_TYPE, XLSX_MEDIA_TYPE, file_response

logger = logging.getLogger(__name__)

router = APIRouter()

FORMATS = ("pdf", "excel")


def load_resident(db: Session, resident_id: str) -> ResidentSnapshot:
    """Resident snapshot with documents, or the 400/404 the caller should see."""
    if not is_valid_object_id(resident_id):
        raise HTTPException(status_code=400, detail="Invalid resident ID format")
    resident = find_resident_by_id(db, resident_id, populate_documents=True)
    if not resident:
        raise HTTPException(status_code=404, detail="Resident not found")
    return resident


def get_report_renderer(
    db: Session = Depends(get_db),
    fetcher: BlobFetcher = Depends(get_blob_fetcher),
) -> ReportRenderer:
    branding = get_branding(db)
    logo_resolver = BrandingLogoResolver(branding, fallback=FileLogoResolver())
    return ReportRenderer(branding, logo_resolver, fetcher)


@router.get("/{resident_id}/download")
async def download_resident_report(
    resident_id: str,
    format: str = Query("pdf"),
    template: str = Query("detailed"),
    db: Session = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    """
    Download a resident report.

    Parameters:
    - format: pdf or excel
    - template: detailed, summary, medical or print
    """
    resident = load_resident(db, resident_id)

    if format not in FORMATS:
        raise HTTPException(status_code=400, detail='Invalid format specified. Use "pdf" or "excel".')
    try:
        spec = get_template(template)
    except UnsupportedTemplate as e:
        raise HTTPException(status_code=400, detail=str(e))

    if format == "excel":
        content = residents_workbook([resident], RESIDENT_COLUMNS, "Resident Details")
        filename = f"resident_{resident.identifier}_{spec.name}_{datetime.now().date().isoformat()}.xlsx"
        return file_response(content, XLSX_MEDIA_TYPE, filename)

    pdf = await renderer.render_pdf(resident, spec)
    return file_response(pdf, PDF_MEDIA_TYPE, f"resident-{resident.identifier}-{spec.name}.pdf")


@router.get("/{resident_id}/preview")
async def preview_resident_report(
    resident_id: str,
    template: str = Query("summary"),
    db: Session = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    """Inline PDF with a PREVIEW watermark on every page"""
    resident = load_resident(db, resident_id)
    try:
        spec = get_template(template)
    except UnsupportedTemplate as e:
        raise HTTPException(status_code=400, detail=str(e))

    pdf = await renderer.render_pdf(resident, spec, watermark="PREVIEW")
    return file_response(pdf, PDF_MEDIA_TYPE, f"resident-{resident.identifier}-preview.pdf", "inline")


@router.get("/{resident_id}/print")
async def print_resident_report(
    resident_id: str,
    db: Session = Depends(get_db),
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    """Compact print layout, inline"""
    resident = load_resident(db, resident_id)
    pdf = await renderer.render_pdf(resident, "print")
    return file_response(pdf, PDF_MEDIA_TYPE, f"resident-{resident.identifier}-print.pdf", "inline")
