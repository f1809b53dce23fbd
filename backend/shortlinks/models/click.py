from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.dates import utcnow


class Click(Base):
    """Click statistics model"""
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    clicked_at = Column(DateTime, nullable=False, default=utcnow)
    ip_address = Column(String(45), nullable=False)  # IPv4 or IPv6
    user_agent = Column(String(512), nullable=True)
    referer = Column(String(512), nullable=True)

    # Geo data
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)

    # Parsed user agent
    browser_name = Column(String(50), nullable=True)
    browser_version = Column(String(20), nullable=True)
    os_name = Column(String(50), nullable=True)
    os_version = Column(String(20), nullable=True)
    device_type = Column(String(10), nullable=False, default="unknown")
    device_brand = Column(String(50), nullable=True)
    device_model = Column(String(50), nullable=True)

    # Relationship with link
    link = relationship("Link", back_populates="clicks")

    __table_args__ = (
        Index("idx_clicks_link_time", "link_id", "clicked_at"),
    )

    def __repr__(self):
        return f"<Click {self.id} for link {self.link_id}>"
