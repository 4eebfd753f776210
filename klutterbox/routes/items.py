"""Item routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from klutterbox.database import get_db
from klutterbox.schemas.item import (
    ItemBatchCreate,
    ItemBatchResponse,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
)
from klutterbox.services import inventory

router = APIRouter(prefix="/items", tags=["Items"])


@router.get("", response_model=List[ItemResponse])
async def list_items(
    box_code: Optional[str] = Query(None, description="Filter by box"),
    limit: int = Query(100, description="Page size, clamped to 1..500"),
    offset: int = Query(0, description="Rows to skip, at least 0"),
    db: Session = Depends(get_db),
):
    """List items, newest first, optionally filtered by box."""
    return inventory.list_items(db, box_code=box_code, limit=limit, offset=offset)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(item_data: ItemCreate, db: Session = Depends(get_db)):
    """Create an item. Without a box_code it goes to the default box."""
    return inventory.create_item(db, item_data)


@router.post("/batch", response_model=ItemBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_items_batch(batch: ItemBatchCreate, db: Session = Depends(get_db)):
    """Create up to 100 items at once. Either all are saved or none."""
    return {"items": inventory.create_items_batch(db, batch.items)}


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: int, db: Session = Depends(get_db)):
    """Get a specific item."""
    return inventory.get_item(db, item_id)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(item_id: int, item_update: ItemUpdate, db: Session = Depends(get_db)):
    """Update the fields present in the body; moving boxes checks the target exists."""
    return inventory.update_item(db, item_id, item_update)


@router.delete("/{item_id}")
async def delete_item(item_id: int, db: Session = Depends(get_db)):
    """Delete an item and, if it was uploaded here, its image."""
    inventory.delete_item(db, item_id)
    return {"success": True}
