"""Box schemas for request/response validation."""
from typing import Optional
from pydantic import BaseModel, ConfigDict


class BoxCreate(BaseModel):
    """Schema for creating a box.

    ``code`` is optional here so that a missing code is reported by the
    inventory service as a 400 instead of a schema error.
    """
    code: Optional[str] = None
    label: Optional[str] = None


class BoxUpdate(BaseModel):
    """Schema for updating a box.

    Only fields present in the request body are applied; an explicit
    ``"label": null`` clears the label.
    """
    label: Optional[str] = None
    code: Optional[str] = None


class BoxResponse(BaseModel):
    """Schema for box response."""
    id: int
    code: str
    label: Optional[str] = None
    
    model_config = ConfigDict(from_attributes=True)


class BoxSummary(BoxResponse):
    """Box with the number of items it holds."""
    item_count: int = 0
