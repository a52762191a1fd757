"""
Helpers shared by the entity routers.
"""
from datetime import datetime
from typing import Any, Optional

from ...tenancy.repository import ListFilter


def list_filter(
    page: int,
    per_page: int,
    q: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    **equals: Any,
) -> ListFilter:
    """Build a ``ListFilter`` from query parameters; ``None`` predicates are dropped."""
    return ListFilter(
        equals={key: value for key, value in equals.items() if value is not None},
        search=q or None,
        date_from=date_from,
        date_to=date_to,
        limit=per_page,
        offset=(page - 1) * per_page,
    )
