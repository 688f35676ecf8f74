# File: clearcity/routers/reports.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, HTTPException, UploadFile, File, Form, Request
from sqlalchemy import func
from sqlalchemy.orm import Session
from clearcity.db.session import get_db
from clearcity.models.report import Report, ReportStatus
from clearcity.models.user import User
from clearcity.schemas.report import ReportOut, ReportStatusPatch, ReportSubmissionOut, MessageOut
from clearcity.core.ratelimit import limiter, SUBMIT_LIMIT
from clearcity.core.security import TokenUser, get_token_user, is_admin
from clearcity.services.classifier import WasteClassifier, get_classifier
from clearcity.services.storage import ImageStorage, get_storage
from clearcity.services.reports import submit_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

STATUSES = {s.value for s in ReportStatus}


def _joined(db: Session):
    return db.query(Report, User.name, User.profile_image).outerjoin(User, Report.user_id == User.id)


def _report_out(report: Report, user_name: Optional[str] = None, user_image: Optional[str] = None) -> ReportOut:
    out = ReportOut.model_validate(report)
    out.user_name = user_name
    out.user_image = user_image
    return out


def _get_joined(db: Session, report_id: int) -> ReportOut:
    row = _joined(db).filter(Report.id == report_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Report not found")
    return _report_out(*row)


@router.get("", response_model=list[ReportOut])
def list_reports(
    status: Optional[ReportStatus] = Query(default=None),
    user_id: Optional[int] = Query(default=None, alias="userId"),
    report_type: Optional[str] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
):
    q = _joined(db)
    if status:
        q = q.filter(Report.status == status)
    if user_id is not None:
        q = q.filter(Report.user_id == user_id)
    if report_type:
        q = q.filter(Report.type == report_type)
    q = q.order_by(Report.created_at.desc(), Report.id.desc())
    return [_report_out(*row) for row in q.all()]


@router.post("", response_model=ReportSubmissionOut, status_code=201)
@limiter.limit(SUBMIT_LIMIT)
def create_report(
    request: Request,
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location_name: Optional[str] = Form(None),
    image: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    auth: TokenUser = Depends(get_token_user),
    classifier: WasteClassifier = Depends(get_classifier),
    storage: ImageStorage = Depends(get_storage),
):
    submission = submit_report(
        db,
        user_id=auth.id,
        latitude=latitude,
        longitude=longitude,
        description=description,
        location_name=location_name,
        image=image,
        classifier=classifier,
        storage=storage,
    )
    classification = submission.classification
    return ReportSubmissionOut(
        report=_report_out(submission.report),
        classification=classification.payload() if classification else None,
    )


@router.get("/{report_id}", response_model=ReportOut)
def get_report(report_id: int, db: Session = Depends(get_db)):
    return _get_joined(db, report_id)


@router.patch("/{report_id}", response_model=ReportOut)
def update_status(
    report_id: int,
    body: ReportStatusPatch,
    db: Session = Depends(get_db),
    auth: TokenUser = Depends(get_token_user),
):
    if body.status not in STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    report = db.get(Report, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    report.status = ReportStatus(body.status)
    report.updated_at = func.now()
    if report.status == ReportStatus.resolved:
        report.resolved_at = func.now()
        report.resolved_by = auth.id
    db.commit()
    return _get_joined(db, report_id)


@router.delete("/{report_id}", response_model=MessageOut)
def delete_report(
    report_id: int,
    db: Session = Depends(get_db),
    auth: TokenUser = Depends(get_token_user),
    storage: ImageStorage = Depends(get_storage),
):
    report = db.get(Report, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    if report.user_id != auth.id and not is_admin(db, auth.id):
        raise HTTPException(status_code=403, detail="Not authorized to delete this report")

    storage.delete(report.image_url)
    db.delete(report)
    db.commit()
    logger.info(f"Report {report_id} deleted by user {auth.id}")
    return {"message": "Report deleted successfully"}
