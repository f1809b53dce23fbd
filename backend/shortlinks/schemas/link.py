from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class LinkCreate(BaseModel):
    """Schema for creating a new short link"""
    original_url: str = Field(..., description="Original URL to shorten", min_length=1, max_length=2048)
    custom_alias: Optional[str] = Field(None, description="Custom alias used as the short code")
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = None


class LinkUpdate(BaseModel):
    """Schema for updating a link. Only fields present in the body are changed."""
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None


class LinkResponse(BaseModel):
    """Schema for link response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    short_code: str
    custom_alias: Optional[str] = None
    original_url: str
    short_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []
    clicks_count: int
    is_active: bool
    expires_at: Optional[datetime] = None
    last_clicked_at: Optional[datetime] = None
    owner_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    qr_code: Optional[str] = None


class LinkData(BaseModel):
    url: LinkResponse


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class LinkListData(BaseModel):
    urls: List[LinkResponse]
    pagination: Pagination
