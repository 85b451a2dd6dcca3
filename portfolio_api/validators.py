"""
Query validation utilities for common list-endpoint patterns.
"""

import re
from typing import Annotated

from fastapi import Depends, HTTPException, Query

from .database import ListParams

MAX_SEARCH_LENGTH = 200


def require_valid_search(search: str | None) -> str | None:
    """
    Validate a free-text search term, which is used as a regular expression.

    Args:
        search: The raw search query parameter

    Returns:
        The stripped search term, or None if blank

    Raises:
        HTTPException: 400 if the term is too long or not a valid pattern
    """
    if search is None or not search.strip():
        return None
    search = search.strip()
    if len(search) > MAX_SEARCH_LENGTH:
        raise HTTPException(status_code=400, detail="Search query too long")
    try:
        re.compile(search)
    except re.error:
        raise HTTPException(status_code=400, detail="Invalid search pattern")
    return search


def split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated query parameter into trimmed, non-empty values."""
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def list_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: str | None = None,
    search: str | None = None,
) -> ListParams:
    """Dependency collecting the shared list query parameters."""
    return ListParams(page=page, limit=limit, sort=sort, search=search)


ListParamsDep = Annotated[ListParams, Depends(list_params)]
