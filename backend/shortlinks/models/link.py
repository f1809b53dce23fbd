from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, ForeignKey, JSON, Text, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.dates import utcnow


class Link(Base):
    """Short link model"""
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    # Aliases are stored here too, so this constraint covers both namespaces
    short_code = Column(String(50), unique=True, index=True, nullable=False)
    custom_alias = Column(String(50), unique=True, nullable=True)
    original_url = Column(String(2048), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    clicks_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime, nullable=True)
    last_clicked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    owner = relationship("User", back_populates="links")
    clicks = relationship("Click", back_populates="link", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("clicks_count >= 0", name="ck_links_clicks_non_negative"),
        Index("idx_links_owner_url", "owner_id", "original_url"),
    )

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at

    def __repr__(self):
        return f"<Link {self.short_code} -> {self.original_url}>"
