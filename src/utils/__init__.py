"""
Utility modules for Review Insight.

Cross-cutting concerns:
- Coercion: Normalize numeric and percentage values
- JSON extraction: Recover JSON objects from model output
- Storage: Report history persistence
"""
