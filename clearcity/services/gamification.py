# File: clearcity/services/gamification.py
import logging
import math
from dataclasses import dataclass
from sqlalchemy import update, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from clearcity.models.user import User, UserRole
from clearcity.models.report import Report
from clearcity.models.achievement import UserAchievement

logger = logging.getLogger(__name__)

XP_PER_REPORT = 10

# promoted admins are pinned to these values
ADMIN_LEVEL = 99
ADMIN_XP = 9999

@dataclass(frozen=True)
class Achievement:
    id: int
    title: str
    description: str

FIRST_REPORT = Achievement(1, "First Step", "Submit your first report")

_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}

def level_for_xp(xp: int) -> int:
    """Level L starts at L^2 * 100 XP."""
    return max(1, math.isqrt(max(xp, 0) // 100))

def award_xp(db: Session, user_id: int, amount: int) -> None:
    db.execute(update(User).where(User.id == user_id).values(xp=User.xp + amount))
    row = db.query(User.xp, User.role).filter(User.id == user_id).first()
    if row and row.role == UserRole.user:
        db.execute(update(User).where(User.id == user_id).values(level=level_for_xp(row.xp)))
    db.commit()

def award_achievement(db: Session, user_id: int, achievement: Achievement) -> bool:
    """Inserts the award unless the user already has it. Returns True if it was new."""
    insert = _INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        raise RuntimeError(f"unsupported dialect {db.get_bind().dialect.name}")
    stmt = (
        insert(UserAchievement)
        .values(
            user_id=user_id,
            achievement_id=achievement.id,
            achievement_title=achievement.title,
            achievement_description=achievement.description,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount == 1

def report_count(db: Session, user_id: int) -> int:
    return db.query(func.count(Report.id)).filter(Report.user_id == user_id).scalar() or 0

def reward_submission(db: Session, user_id: int) -> None:
    award_xp(db, user_id, XP_PER_REPORT)
    if report_count(db, user_id) == 1:
        if award_achievement(db, user_id, FIRST_REPORT):
            logger.info(f"User {user_id} unlocked achievement {FIRST_REPORT.id}")
