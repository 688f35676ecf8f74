# File: clearcity/services/classifier.py
# Project: clearcity-api
"""Client for the hosted trash-detection model.

The model is served by Roboflow's inference API: the image is posted as a
base64 string and the response carries a ``predictions`` list of
``{"class": str, "confidence": float, ...}`` boxes.
"""

import base64
import json
import logging
from functools import lru_cache
from typing import Optional

import requests

from clearcity.core.config import settings
from clearcity.schemas.classification import Classification

logger = logging.getLogger(__name__)

# Fixed policy, not tunable per call
CONFIDENCE_THRESHOLD = 0.50
OVERLAP_THRESHOLD = 0.50


def select_best(predictions: list[dict]) -> Classification:
    """Ranks candidates by confidence, highest first; the first one wins a tie."""
    if not predictions:
        return Classification.empty()
    ranked = sorted(predictions, key=lambda p: float(p["confidence"]), reverse=True)
    best = ranked[0]
    confidence = float(best["confidence"])
    return Classification(
        is_waste=confidence >= CONFIDENCE_THRESHOLD,
        waste_type=str(best["class"]),
        confidence=confidence,
        all_predictions=ranked,
    )


class WasteClassifier:
    def __init__(self, model_url: str, api_key: Optional[str], timeout: float):
        self.model_url = model_url
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s=settings) -> "WasteClassifier":
        return cls(s.roboflow_model_url, s.roboflow_api_key, s.classifier_timeout)

    def _infer(self, data: bytes) -> list[dict]:
        if not self.api_key:
            raise RuntimeError("ROBOFLOW_API_KEY is not configured")
        r = requests.post(
            self.model_url,
            params={
                "api_key": self.api_key,
                "confidence": CONFIDENCE_THRESHOLD,
                "overlap": OVERLAP_THRESHOLD,
            },
            data=base64.b64encode(data).decode("ascii"),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )
        r.raise_for_status()
        predictions = r.json().get("predictions")
        return list(predictions or [])

    def classify(self, data: bytes) -> Classification:
        """Classifies one image. Never raises: any failure yields a non-waste verdict."""
        try:
            result = select_best(self._infer(data))
        except Exception as e:
            logger.error(f"AI classification error: {e}", exc_info=True)
            return Classification.failed()

        logger.info(
            "Trash detection: %s",
            json.dumps({"outcome": result.outcome.value, "predictions": result.all_predictions or []}),
        )
        return result


@lru_cache
def get_classifier() -> WasteClassifier:
    return WasteClassifier.from_settings()
