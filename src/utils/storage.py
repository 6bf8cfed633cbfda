"""
Storage utility.

JSON file persistence for report history.
"""

import json
import logging
import os
from typing import List, Optional, Sequence

from src.models.analysis import AnalysisResult
from src.models.history import HistoryRecord, generate_record_id
from src.models.review import ReviewRecord

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Persists analysis reports in a single JSON file, newest first.

    The file is loaded when the store is created and rewritten after every
    change. At most ``max_records`` reports are kept.
    """

    def __init__(self, path: str, max_records: int = 50):
        """
        Initialize history store.

        Args:
            path: Path to the history JSON file
            max_records: Number of reports to retain
        """
        self.path = str(path)
        self.max_records = max_records
        self._records: List[HistoryRecord] = []

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if os.path.exists(self.path):
            self._load()
        else:
            logger.info(f"No history file at {self.path}, starting empty")

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._records = [HistoryRecord.from_dict(item) for item in data]
            logger.info(f"Loaded {len(self._records)} history records")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to read history file {self.path}: {e}. Starting empty.")
            self._records = []
            self._set_aside()

    def _set_aside(self) -> None:
        """Move an unreadable history file aside so the next save does not overwrite it."""
        corrupt_path = f"{self.path}.corrupt"
        try:
            os.replace(self.path, corrupt_path)
            logger.warning(f"Moved unreadable history file to {corrupt_path}")
        except OSError as e:
            logger.error(f"Could not move unreadable history file {self.path}: {e}")
            raise

    def _flush(self) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(
                    [r.to_dict() for r in self._records], f, ensure_ascii=False, indent=2
                )
        except OSError as e:
            logger.error(f"Failed to write history file {self.path}: {e}")
            raise

    def save(
        self,
        reviews: Sequence[ReviewRecord],
        analysis: AnalysisResult,
        file_name: Optional[str] = None
    ) -> str:
        """
        Store a new report.

        Returns:
            Generated record id
        """
        record = HistoryRecord(
            record_id=generate_record_id(),
            analysis=analysis,
            reviews=list(reviews),
            file_name=file_name
        )
        self._records.insert(0, record)

        dropped = len(self._records) - self.max_records
        if dropped > 0:
            self._records = self._records[:self.max_records]
            logger.info(f"History limit reached, dropped {dropped} oldest records")

        self._flush()
        logger.info(f"Saved report {record.record_id} ({len(record.reviews)} reviews)")
        return record.record_id

    def list(self) -> List[HistoryRecord]:
        """All records, newest first."""
        return list(self._records)

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        """Record by id, or None."""
        return next((r for r in self._records if r.record_id == record_id), None)

    def delete(self, record_id: str) -> bool:
        """Remove a record. Returns False if the id is unknown."""
        remaining = [r for r in self._records if r.record_id != record_id]
        if len(remaining) == len(self._records):
            logger.warning(f"History record {record_id} not found")
            return False
        self._records = remaining
        self._flush()
        logger.info(f"Deleted report {record_id}")
        return True

    def clear(self) -> None:
        """Remove every record."""
        self._records = []
        self._flush()
        logger.info("Cleared report history")
