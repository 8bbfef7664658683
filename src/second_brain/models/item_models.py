"""
# Item Models

An *item* is one saved piece of content: a link, article, video or note. Every item
belongs to exactly one brain and one owning user.

**Tags:** stored in the order given, with surrounding whitespace trimmed and empty
entries dropped, so `["a", " b ", ""]` is persisted as `["a", "b"]`.

**Metadata:** populated only for items with a URL, from the page's HTML meta tags.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from second_brain.models.user_models import utc_now


class ItemType(str, Enum):
    """Enumeration of content types.

    Attributes:
        LINK: A bookmarked web page.
        ARTICLE: Long-form reading material.
        VIDEO: A video resource.
        NOTE: Free text written by the user.
    """

    LINK = "link"
    ARTICLE = "article"
    VIDEO = "video"
    NOTE = "note"


def normalize_tags(tags: Optional[List[Any]]) -> List[str]:
    """Trim each tag and drop empty ones, preserving order."""
    if not tags:
        return []
    return [str(tag).strip() for tag in tags if tag is not None and str(tag).strip()]


class ItemMetadata(BaseModel):
    """Page metadata extracted from a URL-bearing item."""

    title: Optional[str] = Field(None, description="Page title")
    description: Optional[str] = Field(None, description="Page description")
    thumbnail: Optional[str] = Field(None, description="Preview image URL")
    author: Optional[str] = Field(None, description="Author name")
    published_at: Optional[datetime] = Field(None, description="Publication time")
    duration: Optional[float] = Field(None, description="Video duration in seconds")


class Item(BaseModel):
    """
    Persisted item record.

    Attributes:
        item_id (str): Unique identifier (`itm_...`).
        owner_id (str): Creating user's id; only this user may update or delete the item.
        brain_id (str): Containing brain's id.
    """

    item_id: str = Field(..., description="Unique item ID")
    title: str = Field(..., min_length=1, description="Item title")
    type: ItemType = Field(..., description="Content type")
    url: Optional[str] = Field(None, description="Source URL")
    content: Optional[str] = Field(None, description="Free-text content")
    description: Optional[str] = Field(None, description="Short description")
    tags: List[str] = Field(default_factory=list, description="Ordered tags")
    owner_id: str = Field(..., description="Owning user ID")
    brain_id: str = Field(..., description="Containing brain ID")
    metadata: Optional[ItemMetadata] = Field(None, description="Extracted page metadata")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")

    model_config = {"use_enum_values": True}


class CreateItemRequest(BaseModel):
    """
    Request body for `POST /items`.

    `title` must be non-empty after trimming and `type` must be one of the four
    content types; the brain must be accessible to the caller.
    """

    title: str = Field(..., min_length=1, max_length=500, description="Item title")
    type: ItemType = Field(..., description="Content type")
    brain_id: str = Field(..., min_length=1, description="Target brain ID")
    url: Optional[str] = Field(None, description="Source URL")
    content: Optional[str] = Field(None, description="Free-text content")
    description: Optional[str] = Field(None, description="Short description")
    tags: List[str] = Field(default_factory=list, description="Tags")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class UpdateItemRequest(BaseModel):
    """
    Request body for `PUT /items/{item_id}`.

    Only fields present in the request are written. Ownership fields (`owner_id`,
    `brain_id`) are not patchable.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    type: Optional[ItemType] = None
    url: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    metadata: Optional[ItemMetadata] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return None if v is None else normalize_tags(v)


class ItemFilters(BaseModel):
    """Optional filters for item listing; `tags` matches any of the given tags."""

    brain_id: Optional[str] = None
    type: Optional[ItemType] = None
    tags: List[str] = Field(default_factory=list)
    search: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return normalize_tags(v)

    @field_validator("search", mode="before")
    @classmethod
    def blank_search_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ItemResponse(BaseModel):
    item_id: str
    title: str
    type: ItemType
    url: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: str
    brain_id: str
    metadata: Optional[ItemMetadata] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_item(cls, item: Item) -> "ItemResponse":
        return cls(**item.model_dump())


class Pagination(BaseModel):
    page: int = Field(..., ge=1, description="1-based page number")
    limit: int = Field(..., ge=1, description="Page size")
    total: int = Field(..., ge=0, description="Total matching items")
    pages: int = Field(..., ge=0, description="Total number of pages")


class ItemPage(BaseModel):
    items: List[ItemResponse]
    pagination: Pagination


class DeleteItemResponse(BaseModel):
    message: str = "Item deleted successfully"
