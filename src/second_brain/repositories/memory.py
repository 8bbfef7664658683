"""
# In-Memory Repositories

Process-local implementations of the repository interfaces, selected with
`STORAGE_BACKEND=memory` and used by the test suite. They enforce the same unique
constraints as the MongoDB indexes and return copies so callers never mutate stored
state by accident.

Free-text search approximates MongoDB's text index: an item matches when any
whitespace-separated search term occurs (case-insensitively) in its title,
description or content.
"""

import itertools
from typing import Any, Dict, Iterable, List, Optional, Tuple

from second_brain.exceptions import ConflictError
from second_brain.models.brain_models import Brain
from second_brain.models.item_models import Item, ItemFilters
from second_brain.models.user_models import UserInDB, utc_now
from second_brain.repositories.base import BrainRepository, ItemRepository, UserRepository


class _Store:
    """Insertion-ordered record store; the sequence number breaks `created_at` ties."""

    def __init__(self):
        self._records: Dict[str, Tuple[int, Any]] = {}
        self._sequence = itertools.count()

    def put(self, key: str, record: Any):
        seq = self._records[key][0] if key in self._records else next(self._sequence)
        self._records[key] = (seq, record.model_copy(deep=True))

    def get(self, key: str) -> Optional[Any]:
        entry = self._records.get(key)
        return entry[1].model_copy(deep=True) if entry else None

    def pop(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def values(self) -> Iterable[Any]:
        return [record for _, record in self._records.values()]

    def newest_first(self, records: Iterable[Any], key_attr: str) -> List[Any]:
        return sorted(
            (r.model_copy(deep=True) for r in records),
            key=lambda r: (r.created_at, self._records[getattr(r, key_attr)][0]),
            reverse=True,
        )


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._store = _Store()

    def _check_unique(self, candidate: UserInDB):
        for existing in self._store.values():
            if existing.user_id == candidate.user_id:
                continue
            if existing.username == candidate.username:
                raise ConflictError("A record with this username already exists")
            if existing.email == candidate.email:
                raise ConflictError("A record with this email already exists")
            if candidate.google_id and existing.google_id == candidate.google_id:
                raise ConflictError("A record with this google_id already exists")

    async def create(self, user: UserInDB) -> UserInDB:
        if self._store.get(user.user_id):
            raise ConflictError("A record with this user_id already exists")
        self._check_unique(user)
        self._store.put(user.user_id, user)
        return user.model_copy(deep=True)

    async def get_by_id(self, user_id: str) -> Optional[UserInDB]:
        return self._store.get(user_id)

    async def get_by_email(self, email: str) -> Optional[UserInDB]:
        email = email.lower()
        return next((u.model_copy(deep=True) for u in self._store.values() if u.email == email), None)

    async def get_by_username(self, username: str) -> Optional[UserInDB]:
        return next((u.model_copy(deep=True) for u in self._store.values() if u.username == username), None)

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserInDB]:
        user = self._store.get(user_id)
        if not user:
            return None
        updated = user.model_copy(update={**fields, "updated_at": utc_now()})
        self._check_unique(updated)
        self._store.put(user_id, updated)
        return updated.model_copy(deep=True)

    async def delete(self, user_id: str) -> bool:
        return self._store.pop(user_id)


class InMemoryBrainRepository(BrainRepository):
    def __init__(self):
        self._store = _Store()

    async def create(self, brain: Brain) -> Brain:
        if self._store.get(brain.brain_id):
            raise ConflictError("A record with this brain_id already exists")
        self._store.put(brain.brain_id, brain)
        return brain.model_copy(deep=True)

    async def get_by_id(self, brain_id: str) -> Optional[Brain]:
        return self._store.get(brain_id)

    async def find_accessible(self, brain_id: str, user_id: str) -> Optional[Brain]:
        brain = self._store.get(brain_id)
        return brain if brain and brain.is_member(user_id) else None

    async def find_owned(self, brain_id: str, owner_id: str) -> Optional[Brain]:
        brain = self._store.get(brain_id)
        return brain if brain and brain.owner_id == owner_id else None

    async def list_for_member(self, user_id: str) -> List[Brain]:
        members = [b for b in self._store.values() if b.is_member(user_id)]
        return self._store.newest_first(members, "brain_id")

    async def find_public_by_token(self, share_token: str) -> Optional[Brain]:
        for brain in self._store.values():
            if brain.share_token == share_token and brain.is_public:
                return brain.model_copy(deep=True)
        return None

    async def set_share_token(self, brain_id: str, owner_id: str, share_token: str) -> Optional[Brain]:
        brain = await self.find_owned(brain_id, owner_id)
        if not brain:
            return None
        if any(b.share_token == share_token and b.brain_id != brain_id for b in self._store.values()):
            raise ConflictError("A record with this share_token already exists")
        updated = brain.model_copy(update={"share_token": share_token, "is_public": True, "updated_at": utc_now()})
        self._store.put(brain_id, updated)
        return updated

    async def add_collaborator(self, brain_id: str, owner_id: str, user_id: str) -> Optional[Brain]:
        brain = await self.find_owned(brain_id, owner_id)
        if not brain:
            return None
        collaborators = list(brain.collaborators)
        if user_id not in collaborators:
            collaborators.append(user_id)
        updated = brain.model_copy(update={"collaborators": collaborators, "updated_at": utc_now()})
        self._store.put(brain_id, updated)
        return updated


class InMemoryItemRepository(ItemRepository):
    def __init__(self):
        self._store = _Store()

    @staticmethod
    def _matches(item: Item, owner_id: str, filters: ItemFilters) -> bool:
        if item.owner_id != owner_id:
            return False
        if filters.brain_id and item.brain_id != filters.brain_id:
            return False
        if filters.type and item.type != filters.type.value:
            return False
        if filters.tags and not set(filters.tags) & set(item.tags):
            return False
        if filters.search:
            haystack = " ".join(filter(None, [item.title, item.description, item.content])).lower()
            if not any(term in haystack for term in filters.search.lower().split()):
                return False
        return True

    def _filtered(self, owner_id: str, filters: ItemFilters) -> List[Item]:
        matching = [i for i in self._store.values() if self._matches(i, owner_id, filters)]
        return self._store.newest_first(matching, "item_id")

    async def create(self, item: Item) -> Item:
        if self._store.get(item.item_id):
            raise ConflictError("A record with this item_id already exists")
        self._store.put(item.item_id, item)
        return item.model_copy(deep=True)

    async def list_for_owner(self, owner_id: str, filters: ItemFilters, skip: int, limit: int) -> List[Item]:
        return self._filtered(owner_id, filters)[skip : skip + limit]

    async def count_for_owner(self, owner_id: str, filters: ItemFilters) -> int:
        return len(self._filtered(owner_id, filters))

    async def list_recent_in_brain(self, brain_id: str, limit: int) -> List[Item]:
        in_brain = [i for i in self._store.values() if i.brain_id == brain_id]
        return self._store.newest_first(in_brain, "item_id")[:limit]

    async def update_owned(self, item_id: str, owner_id: str, fields: Dict[str, Any]) -> Optional[Item]:
        item = self._store.get(item_id)
        if not item or item.owner_id != owner_id:
            return None
        updated = Item(**{**item.model_dump(), **fields, "updated_at": utc_now()})
        self._store.put(item_id, updated)
        return updated.model_copy(deep=True)

    async def delete_owned(self, item_id: str, owner_id: str) -> bool:
        item = self._store.get(item_id)
        if not item or item.owner_id != owner_id:
            return False
        return self._store.pop(item_id)
