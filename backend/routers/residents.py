"""
Residents router - register, list, view, update and remove residents

Address and care events are stored on the resident row; documents are
separate rows and are removed along with their resident.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload
from typing import Literal, Optional
import logging
import math

from database import get_db
from models import Resident, Document, utcnow
from records import (
    QUICK_FILTERS, build_resident_query, build_smart_search_query, calculate_age,
    count_active, created_since, distinct_values, generate_registration_no,
    health_concern_clause, incomplete_record_clause, is_valid_object_id,
    resident_to_dict, to_json, validate_field,
)
from report_engine.formatting import PLACEHOLDER, format_date
from schemas import ResidentCreate, ResidentUpdate, ResidentFilters, FieldValidationRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_resident_or_404(db: Session, resident_id: str) -> Resident:
    if not is_valid_object_id(resident_id):
        raise HTTPException(status_code=400, detail="Invalid resident ID format")
    resident = db.query(Resident).filter(Resident.id == resident_id).first()
    if not resident:
        raise HTTPException(status_code=404, detail="Resident not found")
    return resident


def resident_response(resident: Resident, populate_documents: bool = True) -> dict:
    """Resident as JSON, with a summary of which photos are on file"""
    data = to_json(resident_to_dict(resident, populate_documents=populate_documents))
    data["photos"] = {
        "before": resident.photo_before_admission,
        "after": resident.photo_after_admission,
        "legacy": resident.photo_url,
        "primary": resident.primary_photo,
    }
    return data


def _registration_taken(db: Session, registration_no: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Resident.id).filter(Resident.registration_no == registration_no)
    if exclude_id:
        query = query.filter(Resident.id != exclude_id)
    return query.first() is not None


# =============================================================================
# RESIDENTS CRUD
# =============================================================================

@router.get("")
async def list_residents(
    filters: ResidentFilters = Depends(),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """
    List residents, newest admission first.

    Accepts the same filters as the bulk export plus page/limit.
    """
    query = build_resident_query(db, filters)
    total = query.count()

    residents = (
        query.options(selectinload(Resident.documents))
        .order_by(Resident.admission_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "success": True,
        "data": [resident_response(r) for r in residents],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


@router.post("", status_code=201)
async def create_resident(data: ResidentCreate, db: Session = Depends(get_db)):
    """Register a new resident; registration number is generated when not supplied"""
    fields = data.model_dump(exclude_none=True)

    if fields.get("registration_no"):
        if _registration_taken(db, fields["registration_no"]):
            raise HTTPException(status_code=400, detail="Registration number already exists")
    else:
        fields["registration_no"] = generate_registration_no(db)

    if fields.get("date_of_birth") and fields.get("age") is None:
        fields["age"] = calculate_age(fields["date_of_birth"])

    fields.setdefault("address", {})
    fields.setdefault("care_events", [])

    resident = Resident(**fields)
    db.add(resident)
    db.commit()
    db.refresh(resident)

    logger.info(f"Resident registered: {resident.registration_no} ({resident.id})")
    return {
        "success": True,
        "message": "Resident registered successfully",
        "data": resident_response(resident),
    }


# =============================================================================
# REGISTRATION FORM HELPERS
# Declared before /{resident_id} so the fixed paths win
# =============================================================================

@router.post("/validate")
async def validate_resident_field(data: FieldValidationRequest, db: Session = Depends(get_db)):
    """
    Live check for one registration form field.

    registration_no and mobile_no are checked against other active residents
    (context.resident_id is skipped when editing); mobile_no, aadhaar_number
    and age are format checked.
    """
    exclude_id = (data.context or {}).get("resident_id")
    return {"success": True, "data": validate_field(db, data.field, data.value, exclude_id)}


@router.get("/autocomplete/{field}")
async def autocomplete(
    field: str,
    q: str = "",
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Suggestions from values already on file; unknown fields get an empty list"""
    return {
        "success": True,
        "data": {
            "field": field,
            "query": q,
            "suggestions": distinct_values(db, field, q, limit),
        },
    }


# =============================================================================
# DASHBOARD
# =============================================================================

NOTIFICATION_PRIORITY = {"high": 3, "medium": 2, "low": 1}
GROWTH_MILESTONE = 10


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


@router.get("/notifications")
async def get_notifications(db: Session = Depends(get_db)):
    """Dashboard alerts derived from active residents, highest priority first"""
    now = utcnow()
    timestamp = now.isoformat()
    notifications = []

    recent = count_active(db, created_since(7, now))
    if recent:
        notifications.append({
            "id": "recent_registrations",
            "type": "info",
            "title": "New Registrations",
            "message": f"{_plural(recent, 'new resident')} registered in the last 7 days",
            "priority": "low",
        })

    concerns = count_active(db, health_concern_clause())
    if concerns:
        notifications.append({
            "id": "health_concerns",
            "type": "warning",
            "title": "Health Attention Required",
            "message": f"{_plural(concerns, 'resident')} may need immediate health attention",
            "priority": "high",
        })

    incomplete = count_active(db, incomplete_record_clause())
    if incomplete:
        verb = "have" if incomplete != 1 else "has"
        notifications.append({
            "id": "incomplete_records",
            "type": "warning",
            "title": "Incomplete Records",
            "message": f"{_plural(incomplete, 'record')} {verb} missing important information",
            "priority": "medium",
        })

    monthly = count_active(db, created_since(30, now))
    if monthly > GROWTH_MILESTONE:
        notifications.append({
            "id": "growth_milestone",
            "type": "success",
            "title": "Growth Milestone",
            "message": f"Excellent progress! {monthly} new registrations this month",
            "priority": "low",
        })

    for notification in notifications:
        notification["timestamp"] = timestamp
    notifications.sort(key=lambda n: NOTIFICATION_PRIORITY[n["priority"]], reverse=True)

    return {
        "success": True,
        "data": {
            "notifications": notifications,
            "summary": {
                "total": len(notifications),
                **{p: sum(1 for n in notifications if n["priority"] == p) for p in NOTIFICATION_PRIORITY},
            },
        },
    }


SMART_SEARCH_SORTS = {
    "created_at": Resident.created_at,
    "admission_date": Resident.admission_date,
    "name": Resident.name,
    "registration_no": Resident.registration_no,
    "age": Resident.age,
}


@router.get("/search/smart")
async def smart_search(
    q: str = "",
    quick_filter: Optional[Literal[QUICK_FILTERS]] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal[tuple(SMART_SEARCH_SORTS)] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db)
):
    """
    Free-text search over active residents with optional quick filters.

    Quick filters: recent (7 days), this_month (30 days), health_concerns,
    needs_attention, rehabilitation. Text and filter must both match.
    """
    query = build_smart_search_query(db, q, quick_filter)
    total = query.count()

    column = SMART_SEARCH_SORTS[sort_by]
    residents = (
        query.order_by(column.asc() if sort_order == "asc" else column.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "success": True,
        "data": [
            {
                "id": r.id,
                "registration_no": r.registration_no,
                "date": format_date(r.admission_date),
                "name": r.name_given_by_organization or r.name,
                "gender": r.gender,
                "age": r.age,
                "place_name": (r.address or {}).get("district") or (r.address or {}).get("state") or PLACEHOLDER,
                "health_status": r.health_status,
                "address": (r.address or {}).get("full_address") or PLACEHOLDER,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in residents
        ],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
        "search_info": {
            "query": q,
            "quick_filter": quick_filter,
            "results_found": total,
        },
    }


@router.get("/{resident_id}")
async def get_resident(resident_id: str, db: Session = Depends(get_db)):
    resident = get_resident_or_404(db, resident_id)
    return {"success": True, "data": resident_response(resident)}


@router.put("/{resident_id}")
async def update_resident(resident_id: str, data: ResidentUpdate, db: Session = Depends(get_db)):
    """Partial update - only fields sent are written"""
    resident = get_resident_or_404(db, resident_id)
    updates = data.model_dump(exclude_unset=True)

    new_reg = updates.get("registration_no")
    if new_reg and new_reg != resident.registration_no and _registration_taken(db, new_reg, resident.id):
        raise HTTPException(status_code=400, detail="Registration number already exists")
    if "registration_no" in updates and not new_reg:
        del updates["registration_no"]

    if "address" in updates:
        updates["address"] = updates["address"] or {}

    for field, value in updates.items():
        setattr(resident, field, value)

    resident.updated_at = utcnow()
    db.commit()
    db.refresh(resident)

    return {
        "success": True,
        "message": "Resident updated successfully",
        "data": resident_response(resident),
    }


@router.delete("/{resident_id}")
async def delete_resident(resident_id: str, db: Session = Depends(get_db)):
    """Delete a resident and every document registered to them"""
    resident = get_resident_or_404(db, resident_id)

    removed = db.query(Document).filter(Document.resident_id == resident.id).delete(synchronize_session=False)
    db.delete(resident)
    db.commit()

    logger.info(f"Resident {resident_id} deleted with {removed} document(s)")
    return {"success": True, "message": "Resident and associated data deleted successfully"}
