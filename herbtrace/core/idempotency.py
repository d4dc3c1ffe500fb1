# herbtrace/core/idempotency.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from herbtrace.errors import DuplicateTokenError
from herbtrace.mongo import store_errors

logger = logging.getLogger(__name__)

TOKEN_FIELD = "clientEventId"


def _find_by_token(collection, token: str, token_field: str) -> Optional[Dict[str, Any]]:
    with store_errors("looking up idempotency token"):
        return collection.find_one({token_field: token}, {"_id": 0})


def _insert(collection, doc: Dict[str, Any], token: Optional[str], token_field: str) -> None:
    try:
        with store_errors("inserting record"):
            collection.insert_one(doc)
    except DuplicateKeyError as e:
        if token and _find_by_token(collection, token, token_field) is not None:
            raise DuplicateTokenError(token) from e
        raise


def resolve_or_create(
    collection,
    token: Optional[str],
    create_fn: Callable[[], Dict[str, Any]],
    token_field: str = TOKEN_FIELD,
) -> Tuple[Dict[str, Any], bool]:
    """
    Returns (record, was_created).

    A stored record with the same token wins and `create_fn` is not called.
    When two requests race past the lookup, the unique index rejects the
    loser, which then re-reads the winner's record.
    """
    if token:
        existing = _find_by_token(collection, token, token_field)
        if existing is not None:
            logger.info("Idempotent replay for %s=%s", token_field, token)
            return existing, False

    doc = create_fn()
    if token:
        doc.setdefault(token_field, token)

    try:
        _insert(collection, doc, token, token_field)
    except DuplicateTokenError:
        logger.warning("Concurrent insert for %s=%s; returning the stored record", token_field, token)
        return _find_by_token(collection, token, token_field), False

    doc.pop("_id", None)
    return doc, True
