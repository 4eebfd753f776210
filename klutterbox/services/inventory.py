"""Box and item repository.

Every mutation runs in one ``transaction``: the row change, the matching
search index change and any cascaded updates are committed together or not
at all. Validation and conflict checks happen before anything is written.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from klutterbox.config import settings
from klutterbox.database import transaction
from klutterbox.errors import ConflictError, NotFoundError, ValidationError
from klutterbox.models.box import Box
from klutterbox.models.item import Item
from klutterbox.schemas.box import BoxUpdate
from klutterbox.schemas.item import ItemCreate, ItemUpdate
from klutterbox.services import search_index, uploads

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


def _clean(value: Optional[str]) -> Optional[str]:
    """Strip a string field; blank becomes ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None


# ---------------------------------------------------------------------------
# Boxes
# ---------------------------------------------------------------------------

def get_box(db: Session, code: str) -> Box:
    box = db.query(Box).filter(Box.code == code).first()
    if not box:
        raise NotFoundError("Box not found")
    return box


def box_exists(db: Session, code: str) -> bool:
    return db.query(Box.id).filter(Box.code == code).first() is not None


def list_boxes(db: Session) -> List[Box]:
    return db.query(Box).order_by(Box.code.asc()).all()


def box_summaries(db: Session) -> List[Dict[str, Any]]:
    """All boxes with the number of items each one holds."""
    rows = (
        db.query(Box.id, Box.code, Box.label, func.count(Item.id).label("item_count"))
        .outerjoin(Item, Item.box_code == Box.code)
        .group_by(Box.id, Box.code, Box.label)
        .order_by(Box.code.asc())
        .all()
    )
    return [
        {"id": row.id, "code": row.code, "label": row.label, "item_count": row.item_count}
        for row in rows
    ]


def create_box(db: Session, code: Optional[str], label: Optional[str] = None) -> Box:
    code = _clean(code)
    if not code:
        raise ValidationError("code is required")
    if box_exists(db, code):
        raise ConflictError("Box code already exists")

    with transaction(db, failure="Failed to create box"):
        box = Box(code=code, label=_clean(label))
        db.add(box)
        try:
            db.flush()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same code
            raise ConflictError("Box code already exists")
    db.refresh(box)
    logger.info("Created box %s", box.code)
    return box


def ensure_default_box(db: Session) -> Box:
    """Create the configured default box if it does not exist yet."""
    box = db.query(Box).filter(Box.code == settings.DEFAULT_BOX_CODE).first()
    if box:
        return box
    return create_box(db, settings.DEFAULT_BOX_CODE, settings.DEFAULT_BOX_LABEL)


def update_box(db: Session, code: str, patch: BoxUpdate) -> Box:
    """Apply the fields present in ``patch``; a new code cascades to items."""
    box = get_box(db, code)
    changes = patch.model_dump(exclude_unset=True)

    new_code = None
    if "code" in changes:
        new_code = _clean(changes["code"])
        if not new_code:
            raise ValidationError("code cannot be empty")
        if new_code == box.code:
            new_code = None
        elif box_exists(db, new_code):
            raise ConflictError("Box code already exists")

    with transaction(db, failure="Failed to update box"):
        if "label" in changes:
            box.label = _clean(changes["label"])
        if new_code:
            _rename_box(db, box, new_code)
    db.refresh(box)
    return box


def _rename_box(db: Session, box: Box, new_code: str) -> None:
    old_code = box.code
    box.code = new_code
    db.flush()
    # The foreign key cascades on databases that enforce it; this covers the rest.
    db.query(Item).filter(Item.box_code == old_code).update(
        {Item.box_code: new_code}, synchronize_session=False
    )
    db.expire_all()
    moved = db.query(Item).filter(Item.box_code == new_code).all()
    for item in moved:
        search_index.reindex_item(db, item)
    logger.info("Renamed box %s to %s (%d item(s))", old_code, new_code, len(moved))


def delete_box(db: Session, code: str) -> None:
    box = get_box(db, code)
    count = db.query(func.count(Item.id)).filter(Item.box_code == code).scalar() or 0
    if count > 0:
        raise ConflictError("Box not empty")

    with transaction(db, failure="Failed to delete box"):
        db.delete(box)
    logger.info("Deleted box %s", code)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple:
    """Clamp paging arguments to ``1 <= limit <= 500`` and ``offset >= 0``."""
    limit = 100 if limit is None else limit
    offset = 0 if offset is None else offset
    return max(1, min(MAX_PAGE_SIZE, limit)), max(0, offset)


def list_items(
    db: Session,
    box_code: Optional[str] = None,
    limit: Optional[int] = 100,
    offset: Optional[int] = 0,
) -> List[Item]:
    """Newest items first, optionally restricted to one box."""
    limit, offset = clamp_page(limit, offset)
    query = db.query(Item)
    if box_code:
        query = query.filter(Item.box_code == box_code)
    return (
        query.order_by(Item.created_at.desc(), Item.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_item(db: Session, item_id: int) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise NotFoundError("Item not found")
    return item


def _validated_fields(db: Session, data: ItemCreate, known_boxes: Optional[set] = None) -> Dict[str, Any]:
    name = _clean(data.name)
    if not name:
        raise ValidationError("name is required")
    box_code = _clean(data.box_code) or settings.DEFAULT_BOX_CODE
    if known_boxes is not None:
        exists = box_code in known_boxes
    else:
        exists = box_exists(db, box_code)
    if not exists:
        raise ValidationError(f"Unknown box_code {box_code}")
    return {
        "name": name,
        "description": _clean(data.description),
        "image_path": _clean(data.image_path),
        "box_code": box_code,
    }


def _insert_item(db: Session, fields: Dict[str, Any]) -> Item:
    item = Item(**fields)
    db.add(item)
    db.flush()
    search_index.index_item(db, item)
    return item


def create_item(db: Session, data: ItemCreate) -> Item:
    fields = _validated_fields(db, data)
    with transaction(db, failure="Failed to create item"):
        item = _insert_item(db, fields)
    db.refresh(item)
    logger.info("Created item %d in box %s", item.id, item.box_code)
    return item


def create_items_batch(db: Session, records: Sequence[ItemCreate]) -> List[Item]:
    """Insert all records or none of them.

    Every record is validated before the first insert, and the inserts share
    a single transaction.
    """
    if not records:
        raise ValidationError("items array required")
    if len(records) > settings.BATCH_MAX_ITEMS:
        raise ValidationError(f"too many items (max {settings.BATCH_MAX_ITEMS})")

    known_boxes = {code for (code,) in db.query(Box.code).all()}
    validated = [_validated_fields(db, record, known_boxes) for record in records]

    with transaction(db, failure="Failed to create items batch"):
        created = [_insert_item(db, fields) for fields in validated]
    for item in created:
        db.refresh(item)
    logger.info("Created %d item(s) in batch", len(created))
    return created


def update_item(db: Session, item_id: int, patch: ItemUpdate) -> Item:
    """Apply only the fields present in ``patch`` and reindex the item."""
    item = get_item(db, item_id)
    changes = patch.model_dump(exclude_unset=True)

    if "name" in changes:
        changes["name"] = _clean(changes["name"])
        if not changes["name"]:
            raise ValidationError("name cannot be empty")
    if "box_code" in changes:
        changes["box_code"] = _clean(changes["box_code"])
        if not changes["box_code"]:
            raise ValidationError("box_code cannot be empty")
        if not box_exists(db, changes["box_code"]):
            raise ValidationError(f"Unknown box_code {changes['box_code']}")
    for field in ("description", "image_path"):
        if field in changes:
            changes[field] = _clean(changes[field])

    with transaction(db, failure="Failed to update item"):
        for field, value in changes.items():
            setattr(item, field, value)
        db.flush()
        search_index.reindex_item(db, item)
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: int) -> None:
    """Delete an item and its index entries, then try to remove its image."""
    item = get_item(db, item_id)
    image_path = item.image_path

    with transaction(db, failure="Failed to delete item"):
        search_index.unindex_item(db, item.id)
        db.delete(item)
    logger.info("Deleted item %d", item_id)

    if image_path:
        uploads.remove_owned_file(image_path)
