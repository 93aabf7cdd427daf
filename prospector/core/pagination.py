"""
Pagination utilities for Prospector API.
Offset pages for list overviews, opaque cursors for list contents.
"""
import base64
import binascii
import json
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, TypeVar

from pydantic import BaseModel

from prospector.core.exceptions import ValidationError

T = TypeVar("T")


def create_paginated_response(
    items: List[T],
    total: int,
    page: int,
    limit: int
) -> dict:
    """
    Create a paginated response dictionary.

    Args:
        items: List of items for current page
        total: Total count of all items
        page: Current page number
        limit: Items per page

    Returns:
        Dictionary with pagination metadata
    """
    pages = (total + limit - 1) // limit if limit > 0 else 0

    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1
    }


class CursorInfo(BaseModel):
    """
    Position of the last row handed out.

    Holds the primary sort value and the item id so the next page can resume
    strictly after that row even when sort values repeat.
    """
    sort_by: str
    last_value: Any = None
    last_id: uuid.UUID

    def encode(self) -> str:
        """Encode cursor information to an url-safe base64 string."""
        value = self.last_value
        if isinstance(value, datetime):
            value = {"dt": value.isoformat()}
        cursor_data = {"s": self.sort_by, "v": value, "id": str(self.last_id)}
        json_str = json.dumps(cursor_data, separators=(",", ":"))
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    @classmethod
    def decode(cls, cursor: str) -> "CursorInfo":
        """Decode cursor string; raises ``INVALID_CURSOR`` for anything malformed."""
        try:
            json_str = base64.urlsafe_b64decode(cursor.encode()).decode()
            cursor_data = json.loads(json_str)
            value = cursor_data.get("v")
            if isinstance(value, dict) and "dt" in value:
                value = datetime.fromisoformat(value["dt"])
                if value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
            return cls(
                sort_by=cursor_data["s"],
                last_value=value,
                last_id=uuid.UUID(cursor_data["id"]),
            )
        except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError):
            raise ValidationError("INVALID_CURSOR", "Cursor is malformed")


def decode_cursor(cursor: Optional[str], sort_by: str) -> Optional[CursorInfo]:
    """Decode a cursor and check it was produced for the same sort key."""
    if not cursor:
        return None
    info = CursorInfo.decode(cursor)
    if info.sort_by != sort_by:
        raise ValidationError("INVALID_CURSOR", "Cursor does not match the requested sort order")
    return info
