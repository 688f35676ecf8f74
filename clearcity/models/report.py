# File: clearcity/models/report.py
from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Float, Text, Enum, DateTime, ForeignKey, JSON, func, Index
from sqlalchemy.orm import Mapped, mapped_column
from clearcity.db.base import Base

UNCLASSIFIED = "Unclassified"

class ReportStatus(PyEnum):
    pending = "pending"
    in_progress = "in_progress"
    resolved = "resolved"

class Report(Base):
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    location_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    type: Mapped[str] = mapped_column(String(120), default=UNCLASSIFIED, server_default=UNCLASSIFIED, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ai_classification: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # snapshot of the classifier verdict

    status: Mapped[ReportStatus] = mapped_column(Enum(ReportStatus), default=ReportStatus.pending, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

Index("ix_reports_lat_lng", Report.latitude, Report.longitude)
