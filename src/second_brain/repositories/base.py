"""
# Repository Interfaces

Abstract persistence contracts for the three entities. Services depend only on these
interfaces, so the same business rules run against MongoDB in production and against
the in-memory store in tests and local development.

Every method that mutates or reads a user-scoped record takes the scoping id
explicitly (`owner_id`, `user_id`); none of them rely on ambient request state.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from second_brain.models.brain_models import Brain
from second_brain.models.item_models import Item, ItemFilters
from second_brain.models.user_models import UserInDB


class UserRepository(ABC):
    @abstractmethod
    async def create(self, user: UserInDB) -> UserInDB:
        """Insert a user. Raises `ConflictError` on a duplicate username, e-mail or Google id."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[UserInDB]: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UserInDB]: ...

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[UserInDB]: ...

    @abstractmethod
    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserInDB]: ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool: ...


class BrainRepository(ABC):
    @abstractmethod
    async def create(self, brain: Brain) -> Brain: ...

    @abstractmethod
    async def get_by_id(self, brain_id: str) -> Optional[Brain]: ...

    @abstractmethod
    async def find_accessible(self, brain_id: str, user_id: str) -> Optional[Brain]:
        """Return the brain only if `user_id` is its owner or a collaborator."""

    @abstractmethod
    async def find_owned(self, brain_id: str, owner_id: str) -> Optional[Brain]: ...

    @abstractmethod
    async def list_for_member(self, user_id: str) -> List[Brain]:
        """Brains owned by or shared with `user_id`, newest first."""

    @abstractmethod
    async def find_public_by_token(self, share_token: str) -> Optional[Brain]:
        """Exact token match restricted to brains that are currently public."""

    @abstractmethod
    async def set_share_token(self, brain_id: str, owner_id: str, share_token: str) -> Optional[Brain]:
        """Mark an owned brain public with a new token. Raises `ConflictError` if the token is taken."""

    @abstractmethod
    async def add_collaborator(self, brain_id: str, owner_id: str, user_id: str) -> Optional[Brain]: ...


class ItemRepository(ABC):
    @abstractmethod
    async def create(self, item: Item) -> Item: ...

    @abstractmethod
    async def list_for_owner(self, owner_id: str, filters: ItemFilters, skip: int, limit: int) -> List[Item]:
        """Owner-scoped, filtered items, newest first."""

    @abstractmethod
    async def count_for_owner(self, owner_id: str, filters: ItemFilters) -> int: ...

    @abstractmethod
    async def list_recent_in_brain(self, brain_id: str, limit: int) -> List[Item]: ...

    @abstractmethod
    async def update_owned(self, item_id: str, owner_id: str, fields: Dict[str, Any]) -> Optional[Item]: ...

    @abstractmethod
    async def delete_owned(self, item_id: str, owner_id: str) -> bool: ...
