# File: clearcity/schemas/user.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from clearcity.models.user import UserRole

class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    level: int
    xp: int
    profile_image: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        from_attributes = True

class AchievementOut(BaseModel):
    achievement_id: int
    achievement_title: str
    achievement_description: Optional[str] = None
    unlocked_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProfileOut(UserOut):
    """Profile page payload: the user plus report counters and unlocked achievements."""
    created_at: Optional[datetime] = None
    total_reports: int = 0
    resolved_reports: int = 0
    pending_reports: int = 0
    achievements: List[AchievementOut] = []

class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=120)
    location: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class ProfileImageOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    profile_image: Optional[str] = None

    class Config:
        from_attributes = True

class LeaderboardEntry(BaseModel):
    rank: int
    id: int
    name: str
    level: int
    xp: int
    profile_image: Optional[str] = None
    report_count: int = 0

class UserStatsOut(UserOut):
    created_at: Optional[datetime] = None
    total_reports: int = 0
    resolved_reports: int = 0

class AdminOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoleChangeOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole

    class Config:
        from_attributes = True
