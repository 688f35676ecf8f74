# File: clearcity/schemas/classification.py
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

class ClassificationOutcome(str, Enum):
    prediction = "prediction"
    empty = "empty"
    failed = "failed"

def _now() -> datetime:
    return datetime.now(timezone.utc)

class Classification(BaseModel):
    """Verdict of the waste classifier for one image.

    Serialized with camelCase keys (``isWaste``, ``wasteType``...) because the
    same payload is stored on the report and shown by the client. ``outcome``
    is internal and never serialized.
    """
    model_config = ConfigDict(populate_by_name=True)

    is_waste: bool = Field(alias="isWaste")
    waste_type: str = Field(alias="wasteType")
    confidence: float = Field(ge=0, le=1)
    all_predictions: Optional[List[dict]] = Field(default=None, alias="allPredictions")
    timestamp: datetime = Field(default_factory=_now)
    outcome: ClassificationOutcome = Field(default=ClassificationOutcome.prediction, exclude=True)

    @classmethod
    def empty(cls) -> "Classification":
        return cls(is_waste=False, waste_type="Unknown", confidence=0, outcome=ClassificationOutcome.empty)

    @classmethod
    def failed(cls) -> "Classification":
        return cls(is_waste=False, waste_type="Error", confidence=0, outcome=ClassificationOutcome.failed)

    def payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
