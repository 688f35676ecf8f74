# File: clearcity/routers/admin.py
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, case
from sqlalchemy.orm import Session
from clearcity.core.security import require_admin
from clearcity.db.session import get_db
from clearcity.models.user import User, UserRole
from clearcity.models.report import Report, ReportStatus
from clearcity.schemas.user import UserStatsOut, AdminOut, RoleChangeOut
from clearcity.services import admin as roles

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

ACTIVITY_DAYS = 7

def _as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def _iso_day(d) -> str:
    return d.isoformat() if hasattr(d, "isoformat") else str(d)

def average_resolution_hours(db: Session) -> Optional[float]:
    """Mean created->resolved time. Reports without resolved_at are left out."""
    rows = (
        db.query(Report.created_at, Report.resolved_at)
        .filter(Report.resolved_at.isnot(None), Report.created_at.isnot(None))
        .all()
    )
    if not rows:
        return None
    total = sum((_as_utc(resolved) - _as_utc(created)).total_seconds() for created, resolved in rows)
    return round(total / len(rows) / 3600, 1)

@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    total_users = db.query(func.count(User.id)).filter(User.role == UserRole.user).scalar()
    total_reports = db.query(func.count(Report.id)).scalar()

    by_status = db.query(Report.status, func.count(Report.id)).group_by(Report.status).all()
    by_type = (
        db.query(Report.type, func.count(Report.id).label("count"))
        .group_by(Report.type)
        .order_by(func.count(Report.id).desc(), Report.type.asc())
        .all()
    )

    since = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=ACTIVITY_DAYS)
    day = func.date(Report.created_at)
    activity = (
        db.query(day.label("date"), func.count(Report.id))
        .filter(Report.created_at >= since)
        .group_by(day)
        .order_by(day)
        .all()
    )

    return {
        "totalUsers": total_users or 0,
        "totalReports": total_reports or 0,
        "reportsByStatus": [{"status": s.value, "count": n} for s, n in by_status],
        "reportsByType": [{"type": t, "count": n} for t, n in by_type],
        "recentActivity": [{"date": _iso_day(d), "count": n} for d, n in activity],
        "avgResolutionTime": average_resolution_hours(db),
    }

@router.get("/users", response_model=list[UserStatsOut])
def list_users(db: Session = Depends(get_db)):
    rows = (
        db.query(
            User,
            func.count(Report.id),
            func.coalesce(func.sum(case((Report.status == ReportStatus.resolved, 1), else_=0)), 0),
        )
        .outerjoin(Report, Report.user_id == User.id)
        .group_by(User.id)
        .order_by(User.xp.desc(), User.id.asc())
        .all()
    )
    result = []
    for user, total, resolved in rows:
        out = UserStatsOut.model_validate(user)
        out.total_reports = total
        out.resolved_reports = resolved
        result.append(out)
    return result

@router.get("/admins", response_model=list[AdminOut])
def list_admins(db: Session = Depends(get_db)):
    return (
        db.query(User)
        .filter(User.role == UserRole.admin)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )

@router.post("/promote/{email}", response_model=RoleChangeOut)
def promote(email: str, db: Session = Depends(get_db)):
    user = roles.promote(db, email)
    if not user:
        raise HTTPException(404, "User not found")
    return user

@router.post("/demote/{email}", response_model=RoleChangeOut)
def demote(email: str, db: Session = Depends(get_db)):
    user = roles.demote(db, email)
    if not user:
        raise HTTPException(404, "Admin not found")
    return user
