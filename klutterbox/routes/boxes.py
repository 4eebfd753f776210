"""Box routes."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from klutterbox.database import get_db
from klutterbox.schemas.box import BoxCreate, BoxResponse, BoxSummary, BoxUpdate
from klutterbox.services import inventory

router = APIRouter(prefix="/boxes", tags=["Boxes"])


@router.get("", response_model=List[BoxResponse])
async def list_boxes(db: Session = Depends(get_db)):
    """List all boxes ordered by code."""
    return inventory.list_boxes(db)


@router.post("", response_model=BoxResponse, status_code=status.HTTP_201_CREATED)
async def create_box(box_data: BoxCreate, db: Session = Depends(get_db)):
    """Create a new box. The code must be unique."""
    return inventory.create_box(db, box_data.code, box_data.label)


@router.get("/summary", response_model=List[BoxSummary])
async def box_summary(db: Session = Depends(get_db)):
    """List all boxes with their item counts."""
    return inventory.box_summaries(db)


@router.get("/{code}", response_model=BoxResponse)
async def get_box(code: str, db: Session = Depends(get_db)):
    """Get a box by its code."""
    return inventory.get_box(db, code)


@router.put("/{code}", response_model=BoxResponse)
async def update_box(code: str, box_update: BoxUpdate, db: Session = Depends(get_db)):
    """Update a box label, or rename its code (items follow the box)."""
    return inventory.update_box(db, code, box_update)


@router.delete("/{code}")
async def delete_box(code: str, db: Session = Depends(get_db)):
    """Delete a box. Only empty boxes can be deleted."""
    inventory.delete_box(db, code)
    return {"success": True}
