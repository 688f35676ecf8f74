from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from clearcity.models.report import ReportStatus

class ReportOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    latitude: float
    longitude: float
    location_name: Optional[str] = None
    type: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    ai_classification: Optional[dict] = None
    status: ReportStatus

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None

    # Reporter info joined in for list / detail views
    user_name: Optional[str] = None
    user_image: Optional[str] = None

    class Config:
        from_attributes = True


class ReportStatusPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[str] = None


class ReportSubmissionOut(BaseModel):
    report: ReportOut
    classification: Optional[dict] = None


class MessageOut(BaseModel):
    message: str
