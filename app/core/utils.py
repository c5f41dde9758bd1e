"""
Shared utility functions.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def apply_search_filter(query, count_query, search: Optional[str], *fields):
    """
    Apply ilike search filter to multiple fields.

    Args:
        query: The main SQLAlchemy query
        count_query: The count query for pagination
        search: The search term (can be None)
        *fields: SQLAlchemy column objects to search

    Returns:
        Tuple of (filtered_query, filtered_count_query)
    """
    if not search or not fields:
        return query, count_query

    search_filter = f"%{search.lower()}%"

    conditions = [field.ilike(search_filter) for field in fields]
    combined = conditions[0]
    for condition in conditions[1:]:
        combined = combined | condition

    return query.where(combined), count_query.where(combined)
