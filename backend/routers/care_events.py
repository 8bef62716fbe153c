"""
Care events router - a resident's care timeline

Events are kept as a JSON list on the resident row. The timeline endpoint
returns them most recent first; reports render them in stored order.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import Optional
import logging

from database import get_db
from models import Resident, new_object_id, utcnow
from records import is_valid_object_id
from schemas import CareEventCreate, CareEventUpdate
from routers.residents import get_resident_or_404

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_CREATED_BY = "Admin"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _event_sort_key(event: dict) -> float:
    try:
        d = datetime.fromisoformat(str(event.get("date")).replace("Z", "+00:00"))
    except ValueError:
        return float("-inf")
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    return d.timestamp()


def _find_event(resident: Resident, event_id: str) -> int:
    for index, event in enumerate(resident.care_events or []):
        if event.get("id") == event_id:
            return index
    raise HTTPException(status_code=404, detail="Care event not found")


def _load(db: Session, resident_id: str, event_id: str) -> Resident:
    if not is_valid_object_id(resident_id) or not is_valid_object_id(event_id):
        raise HTTPException(status_code=400, detail="Invalid ID format")
    return get_resident_or_404(db, resident_id)


@router.get("/{resident_id}/care-events")
async def list_care_events(resident_id: str, db: Session = Depends(get_db)):
    resident = get_resident_or_404(db, resident_id)
    events = sorted(resident.care_events or [], key=_event_sort_key, reverse=True)
    return {"success": True, "data": events, "count": len(events)}


@router.post("/{resident_id}/care-events", status_code=201)
async def add_care_event(resident_id: str, data: CareEventCreate, db: Session = Depends(get_db)):
    resident = get_resident_or_404(db, resident_id)

    event = {
        "id": new_object_id(),
        "type": _clean(data.type),
        "description": _clean(data.description),
        "date": _iso(data.date),
        "doctor": _clean(data.doctor) or "",
        "medications": _clean(data.medications) or "",
        "next_visit": _iso(data.next_visit),
        "status": _clean(data.status) or "Completed",
        "remarks": _clean(data.remarks) or "",
        "created_at": _iso(utcnow()),
        "created_by": _clean(data.created_by) or DEFAULT_CREATED_BY,
    }

    # JSON columns only notice reassignment, not in-place mutation
    resident.care_events = list(resident.care_events or []) + [event]
    resident.updated_at = utcnow()
    db.commit()

    logger.info(f"Care event {event['id']} added to resident {resident_id}")
    return {"success": True, "message": "Care event added successfully", "data": event}


@router.put("/{resident_id}/care-events/{event_id}")
async def update_care_event(
    resident_id: str,
    event_id: str,
    data: CareEventUpdate,
    db: Session = Depends(get_db)
):
    resident = _load(db, resident_id, event_id)
    index = _find_event(resident, event_id)

    events = [dict(e) for e in resident.care_events]
    event = events[index]
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("type", "description", "date", "status"):
            continue
        event[field] = _iso(value) if isinstance(value, datetime) else _clean(value)

    resident.care_events = events
    resident.updated_at = utcnow()
    db.commit()

    return {"success": True, "message": "Care event updated successfully", "data": event}


@router.delete("/{resident_id}/care-events/{event_id}")
async def delete_care_event(resident_id: str, event_id: str, db: Session = Depends(get_db)):
    resident = _load(db, resident_id, event_id)
    index = _find_event(resident, event_id)

    events = list(resident.care_events)
    removed = events.pop(index)
    resident.care_events = events
    resident.updated_at = utcnow()
    db.commit()

    logger.info(f"Care event {event_id} ({removed.get('type')}) removed from resident {resident_id}")
    return {"success": True, "message": "Care event deleted successfully"}
