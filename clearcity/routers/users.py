# File: clearcity/routers/users.py
import logging
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy import func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from clearcity.core.config import settings
from clearcity.core.security import TokenUser, get_token_user
from clearcity.db.session import get_db
from clearcity.models.user import User, UserRole
from clearcity.models.report import Report, ReportStatus
from clearcity.models.achievement import UserAchievement
from clearcity.schemas.user import (
    UserOut,
    ProfileOut,
    ProfileUpdate,
    ProfileImageOut,
    AchievementOut,
    LeaderboardEntry,
)
from clearcity.services.storage import ImageStorage, get_storage, PROFILES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

def _current(db: Session, auth: TokenUser) -> User:
    user = db.get(User, auth.id)
    if not user:
        raise HTTPException(404, "User not found")
    return user

@router.get("/profile", response_model=ProfileOut)
def get_profile(db: Session = Depends(get_db), auth: TokenUser = Depends(get_token_user)):
    user = _current(db, auth)
    total, resolved, pending = db.query(
        func.count(Report.id),
        func.coalesce(func.sum(case((Report.status == ReportStatus.resolved, 1), else_=0)), 0),
        func.coalesce(func.sum(case((Report.status == ReportStatus.pending, 1), else_=0)), 0),
    ).filter(Report.user_id == user.id).one()
    achievements = (
        db.query(UserAchievement)
        .filter(UserAchievement.user_id == user.id)
        .order_by(UserAchievement.unlocked_at.desc(), UserAchievement.id.desc())
        .all()
    )
    out = ProfileOut.model_validate(user)
    out.total_reports = total
    out.resolved_reports = resolved
    out.pending_reports = pending
    out.achievements = [AchievementOut.model_validate(a) for a in achievements]
    return out

@router.patch("/profile", response_model=UserOut)
def update_profile(body: ProfileUpdate, db: Session = Depends(get_db), auth: TokenUser = Depends(get_token_user)):
    changes = {}
    if body.name and body.name.strip():
        changes["name"] = body.name.strip()
    if body.location and body.location.strip():
        changes["location"] = body.location.strip()
    if body.latitude is not None:
        changes["latitude"] = body.latitude
    if body.longitude is not None:
        changes["longitude"] = body.longitude
    if not changes:
        raise HTTPException(400, "No fields to update")

    user = _current(db, auth)
    for k, v in changes.items():
        setattr(user, k, v)
    user.updated_at = func.now()
    db.commit(); db.refresh(user)
    return user

@router.post("/profile/image", response_model=ProfileImageOut)
def upload_profile_image(
    profile_image: UploadFile | None = File(default=None, alias="profileImage"),
    db: Session = Depends(get_db),
    auth: TokenUser = Depends(get_token_user),
    storage: ImageStorage = Depends(get_storage),
):
    if profile_image is None or not profile_image.filename:
        raise HTTPException(400, "No image provided")
    data = storage.read_upload(profile_image)
    user = _current(db, auth)

    url = storage.save(data, PROFILES, profile_image.filename)
    old = user.profile_image
    user.profile_image = url
    user.updated_at = func.now()
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        db.rollback()
        storage.delete(url)
        raise

    # remote avatars (http...) are left alone
    if old and storage.path_for(old) is not None:
        storage.delete(old)
    return user

@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(db: Session = Depends(get_db)):
    rows = (
        db.query(User, func.count(Report.id).label("report_count"))
        .outerjoin(Report, Report.user_id == User.id)
        .filter(User.role == UserRole.user)
        .group_by(User.id)
        .order_by(User.xp.desc(), User.id.asc())
        .limit(settings.leaderboard_size)
        .all()
    )
    return [
        LeaderboardEntry(
            rank=i,
            id=u.id,
            name=u.name,
            level=u.level,
            xp=u.xp,
            profile_image=u.profile_image,
            report_count=n,
        )
        for i, (u, n) in enumerate(rows, start=1)
    ]
