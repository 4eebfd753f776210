"""Search routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from klutterbox.database import get_db
from klutterbox.schemas.item import ItemResponse, SearchResult
from klutterbox.services.search import search_items

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=List[SearchResult])
async def search(
    q: Optional[str] = Query(None, description="Free-text query"),
    box_code: Optional[str] = Query(None, description="Restrict to one box"),
    db: Session = Depends(get_db),
):
    """
    Search items by name, description and box code.
    
    Terms are matched as word prefixes (any term first, then all terms),
    falling back to plain substring matching. Results are ranked with name
    matches ahead of description and box code matches, newest first on ties.
    """
    hits = search_items(db, q, box_code)
    return [
        SearchResult(
            **ItemResponse.model_validate(hit.item).model_dump(),
            score=hit.score,
        )
        for hit in hits
    ]
