"""
Configuration settings for Review Insight.

Centralized configuration for the agents, the pipeline and the CLI.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("REVIEW_INSIGHT_DATA", PROJECT_ROOT / "data"))
HISTORY_PATH = DATA_ROOT / "history.json"

# API Configuration
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# LLM Models
ENRICHMENT_MODEL = "gemini-1.5-flash"
CHAT_MODEL = "gemini-1.5-flash"

# Temperature settings
ENRICHMENT_TEMPERATURE = 0.3
CHAT_TEMPERATURE = 0.7

# Enrichment Agent
ENRICHMENT_MAX_RETRIES = 2
MAX_REVIEWS_FOR_ENRICHMENT = 500  # Reviews serialized into the analysis prompt
ENRICHMENT_MAX_OUTPUT_TOKENS = 8192

# Chat context limits
MINIMAL_CONTEXT_SAMPLE = 30  # Reviews sent before an analysis exists
FULL_CONTEXT_SAMPLE = 15  # Reviews sent alongside a full analysis
CONTEXT_BODY_CHARS = 200
CONTEXT_TIME_SERIES_POINTS = 10
CONTEXT_TYPICAL_REVIEWS = 5

# History
MAX_HISTORY = 50

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "review_insight.log"
