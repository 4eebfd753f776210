"""Item schemas for request/response validation."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ItemCreate(BaseModel):
    """Schema for creating an item.

    ``name`` is validated by the inventory service, which answers 400
    rather than a schema error. A missing ``box_code`` means the default box.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    image_path: Optional[str] = None
    box_code: Optional[str] = None


class ItemUpdate(BaseModel):
    """Schema for updating an item. Unset fields are left untouched."""
    name: Optional[str] = None
    description: Optional[str] = None
    image_path: Optional[str] = None
    box_code: Optional[str] = None


class ItemBatchCreate(BaseModel):
    """Schema for creating several items at once."""
    items: List[ItemCreate] = []


class ItemResponse(BaseModel):
    """Schema for item response."""
    id: int
    name: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    box_code: str
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class ItemBatchResponse(BaseModel):
    """Items created by a batch request."""
    items: List[ItemResponse]


class SearchResult(ItemResponse):
    """An item returned by search, with its relevance score when ranked."""
    score: Optional[float] = None
