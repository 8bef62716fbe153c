"""
Resident Stats Router - Summary counts and dashboard charts
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, time

from database import get_db
from models import Resident, utcnow
from records import (
    age_distribution, count_active, health_concern_clause, month_start,
    monthly_registrations, state_counts,
)

router = APIRouter()


def _grouped_counts(db: Session, column) -> list:
    rows = (
        db.query(column, func.count(Resident.id))
        .filter(Resident.is_active == True)
        .group_by(column)
        .order_by(func.count(Resident.id).desc())
        .all()
    )
    return [{"value": value or "Unknown", "count": count} for value, count in rows]


def _percentage(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def _chart(pairs, total: int) -> list:
    return [{"label": label, "value": count, "percentage": _percentage(count, total)} for label, count in pairs]


def growth_rate(this_month: int, last_month: int) -> float:
    """Month over month change in percent; 100 when last month had none"""
    if last_month:
        return round((this_month - last_month) / last_month * 100, 1)
    return 100.0 if this_month else 0.0


@router.get("/stats/summary")
async def get_resident_stats(db: Session = Depends(get_db)):
    today_start = datetime.combine(datetime.now().date(), time.min)

    total = db.query(func.count(Resident.id)).scalar() or 0
    active = db.query(func.count(Resident.id)).filter(Resident.is_active == True).scalar() or 0
    today = (
        db.query(func.count(Resident.id))
        .filter(Resident.is_active == True, Resident.created_at >= today_start)
        .scalar() or 0
    )

    return {
        "success": True,
        "data": {
            "total_residents": total,
            "active_residents": active,
            "today_registrations": today,
            "gender_stats": _grouped_counts(db, Resident.gender),
            "health_status_stats": _grouped_counts(db, Resident.health_status),
        },
    }


@router.get("/stats/enhanced")
async def get_enhanced_stats(db: Session = Depends(get_db)):
    """
    Dashboard metrics, chart series and one-line insights.

    Percentages are of all active residents. Month boundaries are UTC.
    """
    now = utcnow()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    this_month_start = month_start(now)
    last_month_start = month_start(now, 1)

    total = count_active(db)
    today = count_active(db, Resident.created_at >= day_start)
    this_month = count_active(db, Resident.created_at >= this_month_start)
    last_month = count_active(
        db,
        Resident.created_at >= last_month_start,
        Resident.created_at < this_month_start,
    )
    health_alerts = count_active(db, health_concern_clause())
    growth = growth_rate(this_month, last_month)

    gender = [(g["value"], g["count"]) for g in _grouped_counts(db, Resident.gender)]
    health = [(h["value"], h["count"]) for h in _grouped_counts(db, Resident.health_status)]

    if growth > 0:
        growth_insight = {"type": "growth", "message": f"{growth}% growth this month", "trend": "up"}
    elif growth < 0:
        growth_insight = {"type": "growth", "message": f"{abs(growth)}% decrease this month", "trend": "down"}
    else:
        growth_insight = {"type": "growth", "message": "No growth this month", "trend": "stable"}

    return {
        "success": True,
        "data": {
            "metrics": {
                "total_residents": total,
                "today_registrations": today,
                "this_month_registrations": this_month,
                "last_month_registrations": last_month,
                "growth_rate": growth,
                "health_alerts": health_alerts,
            },
            "charts": {
                "gender_distribution": _chart(gender, total),
                "health_status": _chart(health, total),
                "age_distribution": _chart(age_distribution(db).items(), total),
                "monthly_trends": [
                    {"month": month, "count": count} for month, count in monthly_registrations(db, 6, now).items()
                ],
                "state_distribution": _chart(state_counts(db, 10), total),
            },
            "insights": [
                growth_insight,
                {
                    "type": "health",
                    "message": (f"{health_alerts} residents need health attention" if health_alerts
                                else "No immediate health concerns"),
                    "priority": "high" if health_alerts else "low",
                },
                {
                    "type": "activity",
                    "message": (f"{today} new registration{'s' if today != 1 else ''} today" if today
                                else "No new registrations today"),
                    "trend": "active" if today else "quiet",
                },
            ],
        },
    }
