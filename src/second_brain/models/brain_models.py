"""
# Brain Models

A *brain* is a named collection of items owned by exactly one user. It may list
collaborators, who can read it and add items to it, and it may be published as a
read-only page through a share token.

**Sharing lifecycle:**
*   `is_public` starts `False` and `share_token` starts `None`.
*   Sharing sets `is_public=True` and stores a fresh token; the token is never cleared.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from second_brain.models.item_models import ItemResponse
from second_brain.models.user_models import utc_now


class Brain(BaseModel):
    """
    Persisted brain record.

    Attributes:
        brain_id (str): Unique identifier (`brn_...`).
        name (str): Non-empty display name.
        owner_id (str): Owning user's id; immutable.
        is_public (bool): Whether the share token currently resolves.
        share_token (Optional[str]): 64-char hex token, unique when present.
        collaborators (List[str]): User ids with read/create access.
    """

    brain_id: str = Field(..., description="Unique brain ID")
    name: str = Field(..., min_length=1, description="Brain name")
    description: Optional[str] = Field(None, description="Brain description")
    owner_id: str = Field(..., description="Owning user ID")
    is_public: bool = Field(default=False, description="Whether the brain is publicly shared")
    share_token: Optional[str] = Field(None, description="Public share token")
    collaborators: List[str] = Field(default_factory=list, description="Collaborator user IDs")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")

    def is_member(self, user_id: str) -> bool:
        return self.owner_id == user_id or user_id in self.collaborators


class CreateBrainRequest(BaseModel):
    """Request body for `POST /brains`."""

    name: str = Field(..., min_length=1, max_length=100, description="Brain name")
    description: Optional[str] = Field(None, max_length=500, description="Brain description")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class AddCollaboratorRequest(BaseModel):
    """Request body for `POST /brains/{brain_id}/collaborators`."""

    identifier: str = Field(..., min_length=1, description="Username or e-mail of the user to add")


class BrainResponse(BaseModel):
    brain_id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    is_public: bool
    share_token: Optional[str] = None
    collaborators: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_brain(cls, brain: Brain) -> "BrainResponse":
        return cls(**brain.model_dump())


class ShareLinkResponse(BaseModel):
    share_token: str = Field(..., description="Public share token")
    share_url: str = Field(..., description="Relative URL of the shared page")


class PublicBrainView(BaseModel):
    """What an anonymous visitor sees of a shared brain: no token, no collaborator list."""

    brain_id: str
    name: str
    description: Optional[str] = None
    owner_username: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SharedBrainResponse(BaseModel):
    brain: PublicBrainView
    items: List[ItemResponse]
