"""
Pipeline Orchestrator.

Coordinates ingestion, baseline statistics, optional LLM enrichment,
reconciliation and persistence for one uploaded export.
"""

import logging
import os
from datetime import datetime
from typing import Optional, Sequence

from src.agents.enrichment import EnrichmentAgent
from src.agents.ingestion import SpreadsheetIngestionAgent
from src.agents.reconciliation import merge_enrichment
from src.agents.statistics import compute_baseline
from src.models.analysis import AnalysisResult
from src.models.history import HistoryRecord
from src.models.review import ReviewRecord
from src.utils.storage import HistoryStore

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Orchestrates one analysis run.

    1. Ingestion → 2. Baseline Statistics → 3. Enrichment (optional)
    → 4. Reconciliation → 5. History Save
    """

    def __init__(
        self,
        storage: HistoryStore,
        enrichment_agent: Optional[EnrichmentAgent] = None,
        ingestion_agent: Optional[SpreadsheetIngestionAgent] = None
    ):
        """
        Initialize pipeline.

        Args:
            storage: History store reports are saved to
            enrichment_agent: LLM enrichment; None runs statistics only
            ingestion_agent: Spreadsheet parser (default column contract if None)
        """
        self.storage = storage
        self.enrichment_agent = enrichment_agent
        self.ingestion_agent = ingestion_agent or SpreadsheetIngestionAgent()

        mode = "with enrichment" if enrichment_agent else "statistics only"
        logger.info(f"Initialized AnalysisPipeline ({mode})")

    def analyze(self, records: Sequence[ReviewRecord]) -> AnalysisResult:
        """
        Baseline plus optional enrichment for records already in memory.

        Enrichment failures never fail the run; the baseline is returned.
        """
        baseline = compute_baseline(records)
        if self.enrichment_agent is None:
            return baseline

        try:
            payload = self.enrichment_agent.enrich(records)
        except Exception as e:
            logger.error(f"Enrichment failed, using baseline statistics only: {e}")
            return baseline

        if payload is None:
            logger.warning("No enrichment payload, using baseline statistics only")
            return baseline
        return merge_enrichment(baseline, payload)

    def run(self, file_path: str) -> HistoryRecord:
        """
        Analyze one export file and store the report.

        Args:
            file_path: Spreadsheet to ingest

        Returns:
            The stored history record

        Raises:
            IngestionError: If the file is empty or fails the column contract
        """
        start_time = datetime.now()
        records = self.ingestion_agent.parse_file(file_path)
        analysis = self.analyze(records)

        record_id = self.storage.save(records, analysis, file_name=os.path.basename(file_path))
        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"Analysis of {file_path} complete in {elapsed:.1f}s: report {record_id}")
        return self.storage.get(record_id)
