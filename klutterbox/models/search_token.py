"""Search index model.

One row per token of an item's name, description or box code. Rows are
written by ``klutterbox.services.search_index`` in the same transaction as
the item change they mirror.
"""
from sqlalchemy import Column, Integer, String, ForeignKey

from klutterbox.database import Base


class ItemSearchToken(Base):
    """A single lower-cased token of an indexed item field."""
    __tablename__ = "item_search_tokens"
    
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    field = Column(String(20), nullable=False)
    token = Column(String(200), nullable=False, index=True)
