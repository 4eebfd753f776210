"""Search index synchronizer.

Keeps ``item_search_tokens`` consistent with the ``items`` table. None of
these functions commit: callers run them inside the same
``klutterbox.database.transaction`` as the item write, so a reader sees
either both the row and its tokens or neither.
"""
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from klutterbox.models.item import Item
from klutterbox.models.search_token import ItemSearchToken
from klutterbox.services.normalize import field_tokens

logger = logging.getLogger(__name__)

# Indexed fields, in the order they are tokenized.
INDEXED_FIELDS = ("name", "description", "box_code")


def _tokens_for(item: Item) -> Iterable[ItemSearchToken]:
    for field in INDEXED_FIELDS:
        for token in field_tokens(getattr(item, field) or ""):
            yield ItemSearchToken(item_id=item.id, field=field, token=token)


def index_item(db: Session, item: Item) -> None:
    """Add index entries for a freshly inserted item."""
    if item.id is None:
        db.flush()
    db.add_all(list(_tokens_for(item)))


def unindex_item(db: Session, item_id: int) -> None:
    """Remove every index entry of an item."""
    db.query(ItemSearchToken).filter(
        ItemSearchToken.item_id == item_id
    ).delete(synchronize_session=False)


def reindex_item(db: Session, item: Item) -> None:
    """Overwrite an item's index entries with its current field values."""
    unindex_item(db, item.id)
    index_item(db, item)


def backfill_missing(db: Session) -> int:
    """Index items that have no entries yet. Returns how many were added."""
    indexed = select(ItemSearchToken.item_id)
    missing = db.query(Item).filter(~Item.id.in_(indexed)).all()
    for item in missing:
        index_item(db, item)
    if missing:
        logger.info("Backfilled search index for %d item(s)", len(missing))
    return len(missing)


def rebuild_index(db: Session) -> int:
    """Drop the whole index and rebuild it from the items table."""
    db.query(ItemSearchToken).delete(synchronize_session=False)
    items = db.query(Item).all()
    for item in items:
        index_item(db, item)
    logger.info("Rebuilt search index for %d item(s)", len(items))
    return len(items)
