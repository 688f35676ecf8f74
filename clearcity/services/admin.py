# File: clearcity/services/admin.py
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from clearcity.core.errors import BadRequest
from clearcity.core.security import normalize_email
from clearcity.models.user import User, UserRole
from clearcity.services.gamification import ADMIN_LEVEL, ADMIN_XP

def admin_count(db: Session) -> int:
    return db.query(func.count(User.id)).filter(User.role == UserRole.admin).scalar() or 0

def _by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()

def promote(db: Session, email: str) -> Optional[User]:
    user = _by_email(db, email)
    if not user:
        return None
    user.role = UserRole.admin
    user.level = ADMIN_LEVEL
    user.xp = ADMIN_XP
    user.updated_at = func.now()
    db.commit(); db.refresh(user)
    return user

def demote(db: Session, email: str) -> Optional[User]:
    """Turns an admin back into a user; level and xp stay at the admin values.

    The admin count is checked before anything is updated so the last admin
    can never be demoted.
    """
    if admin_count(db) <= 1:
        raise BadRequest("Cannot demote the last admin")
    user = _by_email(db, email)
    if not user:
        return None
    user.role = UserRole.user
    user.updated_at = func.now()
    db.commit(); db.refresh(user)
    return user
