"""Image upload and vision suggestion routes."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from klutterbox.config import settings
from klutterbox.database import get_db
from klutterbox.errors import ValidationError
from klutterbox.schemas.item import ItemCreate
from klutterbox.schemas.suggestion import (
    QuickAddResponse,
    UploadResponse,
    VisionSuggestResponse,
)
from klutterbox.services import inventory
from klutterbox.services.uploads import save_upload
from klutterbox.services.vision import (
    VisionClient,
    get_vision_client,
    infer_single_item,
    suggest_items,
)

router = APIRouter(tags=["Uploads"])


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(image: Optional[UploadFile] = File(None)):
    """Store an image and return its public path."""
    stored = await save_upload(image)
    return {"image_path": stored.public_path}


@router.post("/vision-suggest", response_model=VisionSuggestResponse)
async def vision_suggest(
    image: Optional[UploadFile] = File(None),
    box_code: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    vision: VisionClient = Depends(get_vision_client),
):
    """
    Suggest items for a photo without saving any of them.
    
    Unknown or missing box codes fall back to the default box. Without a
    working vision backend the file name is suggested instead.
    """
    requested = (box_code or "").strip() or settings.DEFAULT_BOX_CODE
    target_box = requested if inventory.box_exists(db, requested) else settings.DEFAULT_BOX_CODE

    stored = await save_upload(image)
    suggestions = await suggest_items(
        vision, stored.path, stored.original_filename, stored.content_type
    )
    return {
        "items": [s.to_dict() for s in suggestions],
        "image_path": stored.public_path,
        "box_code": target_box,
    }


@router.post("/quick-add", response_model=QuickAddResponse, status_code=status.HTTP_201_CREATED)
async def quick_add(
    image: Optional[UploadFile] = File(None),
    box_code: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    vision: VisionClient = Depends(get_vision_client),
):
    """Store a photo and create one item for it in a single step."""
    target_box = (box_code or "").strip() or settings.DEFAULT_BOX_CODE
    if not inventory.box_exists(db, target_box):
        raise ValidationError(f"Unknown box_code {target_box}")

    stored = await save_upload(image)
    suggestion = await infer_single_item(
        vision, stored.path, stored.original_filename, stored.content_type
    )
    item = inventory.create_item(db, ItemCreate(
        name=suggestion.name,
        description=suggestion.description or None,
        image_path=stored.public_path,
        box_code=target_box,
    ))
    return {"item": item}
