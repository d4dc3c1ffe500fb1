# herbtrace/services/common.py
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from herbtrace.core.hashing import iso_z
from herbtrace.errors import ValidationError


def now_utc() -> datetime:
    """Naive UTC, the way pymongo hands datetimes back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    """`CE-1a2b3c4d` style ids: prefix plus 4 random bytes in hex."""
    return f"{prefix}-{secrets.token_hex(4)}"


def iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return iso_z(value) if value else None


def page_window(page: Optional[int], page_size: Optional[int], default: int, maximum: int) -> Tuple[int, int, int]:
    """(page, limit, skip); page_size falls back to `default` and is clamped to `maximum`."""
    if page is not None and page < 1:
        raise ValidationError("page must be >= 1")
    if page_size is not None and page_size < 1:
        raise ValidationError("page_size must be >= 1")
    page = page or 1
    limit = min(page_size or default, maximum)
    return page, limit, (page - 1) * limit


def page_result(items, page: int, limit: int, total: int) -> Dict[str, Any]:
    return {"items": items, "page": page, "page_size": limit, "total": total}
