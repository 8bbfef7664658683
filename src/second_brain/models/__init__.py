"""
Pydantic models for the Second Brain API.

Each module pairs a persisted record (`UserInDB`, `Brain`, `Item`) with the request
and response models of the endpoints that operate on it.
"""

from second_brain.models.brain_models import (
    AddCollaboratorRequest,
    Brain,
    BrainResponse,
    CreateBrainRequest,
    PublicBrainView,
    SharedBrainResponse,
    ShareLinkResponse,
)
from second_brain.models.item_models import (
    CreateItemRequest,
    DeleteItemResponse,
    Item,
    ItemFilters,
    ItemMetadata,
    ItemPage,
    ItemResponse,
    ItemType,
    Pagination,
    UpdateItemRequest,
    normalize_tags,
)
from second_brain.models.user_models import (
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserInDB,
    UserPublic,
)

__all__ = [
    "AddCollaboratorRequest",
    "AuthResponse",
    "Brain",
    "BrainResponse",
    "CreateBrainRequest",
    "CreateItemRequest",
    "DeleteItemResponse",
    "GoogleLoginRequest",
    "Item",
    "ItemFilters",
    "ItemMetadata",
    "ItemPage",
    "ItemResponse",
    "ItemType",
    "LoginRequest",
    "MeResponse",
    "Pagination",
    "PublicBrainView",
    "RegisterRequest",
    "SharedBrainResponse",
    "ShareLinkResponse",
    "UpdateItemRequest",
    "UserInDB",
    "UserPublic",
    "normalize_tags",
]
