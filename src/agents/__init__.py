"""
Agent implementations for Review Insight.

Contains the modules that turn a review export into a report:
- Spreadsheet Ingestion Agent
- Baseline Statistics Engine
- Enrichment Agent (LLM)
- Response Reconciliation
- Context Assembler and Review Chat Agent
"""
