"""Box model."""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from klutterbox.database import Base


class Box(Base):
    """Box model - a labeled storage container, addressed by its code."""
    __tablename__ = "boxes"
    
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(100), unique=True, index=True, nullable=False)
    label = Column(String(200), nullable=True)
    
    # Relationships
    items = relationship("Item", back_populates="box")
