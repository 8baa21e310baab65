"""
Data layer module for the course feedback service.

Provides the DuckDB connection wrapper used by the table backend.
"""

from .database import FeedbackDatabase, QueryResult, create_feedback_table

__all__ = ["FeedbackDatabase", "QueryResult", "create_feedback_table"]
