"""
Course feedback service.

Collects course feedback submissions and lists the most recent ones,
stored locally, in a DuckDB table or in a hosted table.
"""

__version__ = "1.0.0"
