"""
History record data model.

A persisted report: the parsed reviews plus the analysis computed from them.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.models.analysis import AnalysisResult
from src.models.review import ReviewRecord

_BASE36 = string.digits + string.ascii_lowercase


def generate_record_id() -> str:
    """Millisecond timestamp plus a short random base36 suffix."""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass
class HistoryRecord:
    record_id: str
    analysis: AnalysisResult
    reviews: List[ReviewRecord] = field(default_factory=list)
    file_name: Optional[str] = None
    created_at: str = field(
        default_factory=lambda: datetime.utcnow().isoformat() + "Z"
    )

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryRecord":
        return cls(
            record_id=data["id"],
            created_at=data.get("createdAt", ""),
            file_name=data.get("fileName"),
            reviews=[ReviewRecord.from_dict(r) for r in data.get("reviews", [])],
            analysis=AnalysisResult.from_dict(data["analysis"])
        )

    def to_dict(self) -> dict:
        info = self.analysis.product_info
        return {
            "id": self.record_id,
            "createdAt": self.created_at,
            "fileName": self.file_name,
            # Summary for list views without loading the whole analysis
            "productInfo": {
                "mainAsin": info.main_asin,
                "title": info.title,
                "totalReviews": info.total_reviews
            },
            "reviews": [r.to_dict() for r in self.reviews],
            "analysis": self.analysis.to_dict()
        }
