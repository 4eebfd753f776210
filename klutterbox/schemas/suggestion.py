"""Schemas for image upload and vision suggestion responses."""
from typing import List
from pydantic import BaseModel

from klutterbox.schemas.item import ItemResponse


class UploadResponse(BaseModel):
    """Public path of a stored image."""
    image_path: str


class SuggestionResponse(BaseModel):
    """A candidate item inferred from an image; never persisted by itself."""
    name: str
    description: str = ""


class VisionSuggestResponse(BaseModel):
    """Suggestions for an uploaded image and where it was stored."""
    items: List[SuggestionResponse]
    image_path: str
    box_code: str


class QuickAddResponse(BaseModel):
    """The item created from an uploaded image."""
    item: ItemResponse
