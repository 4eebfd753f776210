"""Query planner for free-text item search.

A query is resolved in tiers, stopping at the first one that returns rows:

1. ``or``: any query term is a prefix of an indexed token.
2. ``and``: every query term is a prefix of some indexed token of the item.
3. ``substring``: every term occurs somewhere in the item's name or
   description.

Index tiers are ranked by a weighted token score (name > description >
box code, lower is better) and then by recency. With no usable terms but a
box filter, the box's items are listed by recency instead.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, case, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from klutterbox.config import settings
from klutterbox.errors import SearchFailed
from klutterbox.models.item import Item
from klutterbox.models.search_token import ItemSearchToken
from klutterbox.services.normalize import query_terms

logger = logging.getLogger(__name__)

FIELD_WEIGHTS = {
    "name": 1.0,
    "description": 0.8,
    "box_code": 0.3,
}

TIER_OR = "or"
TIER_AND = "and"
TIER_SUBSTRING = "substring"
TIER_BOX = "box"


@dataclass
class SearchHit:
    """An item matched by a search, with the tier that found it."""
    item: Item
    tier: str
    score: Optional[float] = None


def _prefix_conditions(terms: List[str]):
    return [
        ItemSearchToken.token.startswith(term.lower(), autoescape=True)
        for term in terms
    ]


def _run_index_query(
    db: Session,
    terms: List[str],
    box_code: Optional[str],
    require_all: bool,
    limit: int,
) -> List[SearchHit]:
    conditions = _prefix_conditions(terms)
    weight = case(FIELD_WEIGHTS, value=ItemSearchToken.field, else_=0.0)

    scored = (
        db.query(
            ItemSearchToken.item_id.label("item_id"),
            (-func.sum(weight)).label("score"),
        )
        .filter(or_(*conditions))
        .group_by(ItemSearchToken.item_id)
    )
    if require_all:
        scored = scored.having(and_(*[
            func.max(case((condition, 1), else_=0)) == 1
            for condition in conditions
        ]))
    scored = scored.subquery()

    query = db.query(Item, scored.c.score).join(scored, scored.c.item_id == Item.id)
    if box_code:
        query = query.filter(Item.box_code == box_code)
    rows = (
        query.order_by(scored.c.score.asc(), Item.created_at.desc(), Item.id.desc())
        .limit(limit)
        .all()
    )
    tier = TIER_AND if require_all else TIER_OR
    return [SearchHit(item=item, tier=tier, score=float(score)) for item, score in rows]


def _run_substring_query(
    db: Session,
    terms: List[str],
    box_code: Optional[str],
    limit: int,
) -> List[SearchHit]:
    name = func.lower(Item.name)
    description = func.lower(func.coalesce(Item.description, ""))
    per_term = [
        or_(
            name.contains(term.lower(), autoescape=True),
            description.contains(term.lower(), autoescape=True),
        )
        for term in terms
    ]
    query = db.query(Item).filter(and_(*per_term))
    if box_code:
        query = query.filter(Item.box_code == box_code)
    items = query.order_by(Item.created_at.desc(), Item.id.desc()).limit(limit).all()
    return [SearchHit(item=item, tier=TIER_SUBSTRING) for item in items]


def _run_box_listing(db: Session, box_code: str, limit: int) -> List[SearchHit]:
    items = (
        db.query(Item)
        .filter(Item.box_code == box_code)
        .order_by(Item.created_at.desc(), Item.id.desc())
        .limit(limit)
        .all()
    )
    return [SearchHit(item=item, tier=TIER_BOX) for item in items]


def search_items(
    db: Session,
    q: Optional[str],
    box_code: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[SearchHit]:
    """Resolve ``q`` (optionally restricted to ``box_code``) to ranked hits.

    An empty query with no box filter returns ``[]``; browsing everything is
    the job of the item listing. Database errors raise ``SearchFailed`` and
    never yield partial results.
    """
    q = (q or "").strip()
    box_code = (box_code or "").strip() or None
    limit = limit or settings.SEARCH_RESULT_LIMIT
    if not q and not box_code:
        return []

    terms = query_terms(q)
    try:
        if not terms:
            if box_code:
                return _run_box_listing(db, box_code, limit)
            return []

        # Broad OR before strict AND; both are prefix matches on the index.
        hits = _run_index_query(db, terms, box_code, require_all=False, limit=limit)
        if not hits:
            hits = _run_index_query(db, terms, box_code, require_all=True, limit=limit)
        if not hits:
            hits = _run_substring_query(db, terms, box_code, limit)
    except SQLAlchemyError as exc:
        logger.exception("Search failed for q=%r box_code=%r", q, box_code)
        raise SearchFailed() from exc

    logger.debug("Search q=%r box_code=%r -> %d hit(s)", q, box_code, len(hits))
    return hits
