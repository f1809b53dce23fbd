from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.dates import utcnow


class User(Base):
    """Link owner with denormalized link and click counters"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    links_count = Column(Integer, nullable=False, default=0)
    total_clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationship with links
    links = relationship("Link", back_populates="owner")

    def __repr__(self):
        return f"<User {self.email}>"
