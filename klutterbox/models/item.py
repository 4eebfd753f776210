"""Item model."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from klutterbox.database import Base


class Item(Base):
    """Item model - stored in exactly one box at a time."""
    __tablename__ = "items"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_path = Column(String(500), nullable=True)
    box_code = Column(
        String(100),
        ForeignKey("boxes.code", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    # Relationships
    box = relationship("Box", back_populates="items")
