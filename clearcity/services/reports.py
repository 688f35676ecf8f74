# File: clearcity/services/reports.py
# Project: clearcity-api
"""Report submission: store the photo, classify it, persist, reward the reporter."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clearcity.core.errors import AppError, BadRequest, NotWaste
from clearcity.models.report import Report, ReportStatus, UNCLASSIFIED
from clearcity.schemas.classification import Classification
from clearcity.services.classifier import WasteClassifier
from clearcity.services.gamification import reward_submission
from clearcity.services.storage import ImageStorage, REPORTS

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    report: Report
    classification: Optional[Classification]


def parse_location(latitude: Optional[str], longitude: Optional[str]) -> tuple[float, float]:
    if latitude in (None, "") or longitude in (None, ""):
        raise BadRequest("Location is required")
    try:
        return float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise BadRequest("Invalid location")


def submit_report(
    db: Session,
    *,
    user_id: int,
    latitude: Optional[str],
    longitude: Optional[str],
    description: Optional[str],
    location_name: Optional[str],
    image: Optional[UploadFile],
    classifier: WasteClassifier,
    storage: ImageStorage,
) -> Submission:
    lat, lng = parse_location(latitude, longitude)

    image_url = None
    classification = None
    if image is not None and image.filename:
        data = storage.read_upload(image)
        image_url = storage.save(data, REPORTS, image.filename)
        classification = classifier.classify(data)
        if not classification.is_waste:
            logger.info(
                f"Rejected report from user {user_id}: {classification.waste_type} "
                f"({classification.outcome.value}, confidence {classification.confidence})"
            )
            storage.delete(image_url)
            raise NotWaste(classification.payload())

    report = Report(
        user_id=user_id,
        latitude=lat,
        longitude=lng,
        location_name=location_name or None,
        type=classification.waste_type if classification else UNCLASSIFIED,
        description=description,
        image_url=image_url,
        ai_classification=classification.payload() if classification else None,
        status=ReportStatus.pending,
    )
    try:
        db.add(report)
        db.commit()
        db.refresh(report)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating report: {e}", exc_info=True)
        storage.delete(image_url)
        raise AppError("Error creating report")

    # The report is already committed; rewards are best-effort on top of it.
    report_id = report.id
    try:
        reward_submission(db, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to reward report {report_id} for user {user_id}: {e}", exc_info=True)

    return Submission(report=report, classification=classification)
