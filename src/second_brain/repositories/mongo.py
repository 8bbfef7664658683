"""
# MongoDB Repositories

Motor-backed implementations of the repository interfaces. Collections are obtained
lazily from the `db_manager` singleton on every call, so the repositories can be built
at import time before the lifespan has connected.

Documents are stored as the `model_dump()` of the corresponding record, with string
ids (`user_id`, `brain_id`, `item_id`); MongoDB's own `_id` is projected away on read.
Duplicate-key errors from the unique indexes are surfaced as `ConflictError`.
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from second_brain.database import BRAINS_COLLECTION, ITEMS_COLLECTION, USERS_COLLECTION, db_manager
from second_brain.exceptions import ConflictError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.brain_models import Brain
from second_brain.models.item_models import Item, ItemFilters
from second_brain.models.user_models import UserInDB, utc_now
from second_brain.repositories.base import BrainRepository, ItemRepository, UserRepository

logger = get_logger(prefix="[Mongo Repository]")

NO_ID = {"_id": 0}
NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


def _conflict_from(error: DuplicateKeyError) -> ConflictError:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    field = next(iter(key_pattern), "value")
    return ConflictError(f"A record with this {field} already exists")


class MongoUserRepository(UserRepository):
    @property
    def collection(self) -> AsyncIOMotorCollection:
        return db_manager.get_collection(USERS_COLLECTION)

    async def create(self, user: UserInDB) -> UserInDB:
        document = user.model_dump()
        start = db_manager.log_query_start(USERS_COLLECTION, "insert_one", {"user_id": user.user_id})
        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError as e:
            db_manager.log_query_error(USERS_COLLECTION, "insert_one", start, e)
            raise _conflict_from(e)
        db_manager.log_query_success(USERS_COLLECTION, "insert_one", start)
        return user

    async def _find_one(self, query: Dict[str, Any]) -> Optional[UserInDB]:
        doc = await self.collection.find_one(query, NO_ID)
        return UserInDB(**doc) if doc else None

    async def get_by_id(self, user_id: str) -> Optional[UserInDB]:
        return await self._find_one({"user_id": user_id})

    async def get_by_email(self, email: str) -> Optional[UserInDB]:
        return await self._find_one({"email": email.lower()})

    async def get_by_username(self, username: str) -> Optional[UserInDB]:
        return await self._find_one({"username": username})

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserInDB]:
        try:
            doc = await self.collection.find_one_and_update(
                {"user_id": user_id},
                {"$set": {**fields, "updated_at": utc_now()}},
                projection=NO_ID,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise _conflict_from(e)
        return UserInDB(**doc) if doc else None

    async def delete(self, user_id: str) -> bool:
        result = await self.collection.delete_one({"user_id": user_id})
        return result.deleted_count > 0


class MongoBrainRepository(BrainRepository):
    @property
    def collection(self) -> AsyncIOMotorCollection:
        return db_manager.get_collection(BRAINS_COLLECTION)

    @staticmethod
    def _member_query(user_id: str) -> Dict[str, Any]:
        return {"$or": [{"owner_id": user_id}, {"collaborators": user_id}]}

    async def create(self, brain: Brain) -> Brain:
        try:
            await self.collection.insert_one(brain.model_dump())
        except DuplicateKeyError as e:
            raise _conflict_from(e)
        return brain

    async def _find_one(self, query: Dict[str, Any]) -> Optional[Brain]:
        doc = await self.collection.find_one(query, NO_ID)
        return Brain(**doc) if doc else None

    async def get_by_id(self, brain_id: str) -> Optional[Brain]:
        return await self._find_one({"brain_id": brain_id})

    async def find_accessible(self, brain_id: str, user_id: str) -> Optional[Brain]:
        return await self._find_one({"brain_id": brain_id, **self._member_query(user_id)})

    async def find_owned(self, brain_id: str, owner_id: str) -> Optional[Brain]:
        return await self._find_one({"brain_id": brain_id, "owner_id": owner_id})

    async def list_for_member(self, user_id: str) -> List[Brain]:
        query = self._member_query(user_id)
        start = db_manager.log_query_start(BRAINS_COLLECTION, "find", query)
        cursor = self.collection.find(query, NO_ID).sort(NEWEST_FIRST)
        brains = [Brain(**doc) async for doc in cursor]
        db_manager.log_query_success(BRAINS_COLLECTION, "find", start, len(brains))
        return brains

    async def find_public_by_token(self, share_token: str) -> Optional[Brain]:
        return await self._find_one({"share_token": share_token, "is_public": True})

    async def set_share_token(self, brain_id: str, owner_id: str, share_token: str) -> Optional[Brain]:
        try:
            doc = await self.collection.find_one_and_update(
                {"brain_id": brain_id, "owner_id": owner_id},
                {"$set": {"share_token": share_token, "is_public": True, "updated_at": utc_now()}},
                projection=NO_ID,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            logger.error("Share token collision for brain %s", brain_id)
            raise _conflict_from(e)
        return Brain(**doc) if doc else None

    async def add_collaborator(self, brain_id: str, owner_id: str, user_id: str) -> Optional[Brain]:
        doc = await self.collection.find_one_and_update(
            {"brain_id": brain_id, "owner_id": owner_id},
            {"$addToSet": {"collaborators": user_id}, "$set": {"updated_at": utc_now()}},
            projection=NO_ID,
            return_document=ReturnDocument.AFTER,
        )
        return Brain(**doc) if doc else None


class MongoItemRepository(ItemRepository):
    @property
    def collection(self) -> AsyncIOMotorCollection:
        return db_manager.get_collection(ITEMS_COLLECTION)

    @staticmethod
    def build_owner_query(owner_id: str, filters: ItemFilters) -> Dict[str, Any]:
        """Translate listing filters into a MongoDB query; ownership is always part of it."""
        query: Dict[str, Any] = {"owner_id": owner_id}
        if filters.brain_id:
            query["brain_id"] = filters.brain_id
        if filters.type:
            query["type"] = filters.type.value
        if filters.tags:
            query["tags"] = {"$in": filters.tags}
        if filters.search:
            query["$text"] = {"$search": filters.search}
        return query

    async def create(self, item: Item) -> Item:
        await self.collection.insert_one(item.model_dump())
        return item

    async def list_for_owner(self, owner_id: str, filters: ItemFilters, skip: int, limit: int) -> List[Item]:
        query = self.build_owner_query(owner_id, filters)
        start = db_manager.log_query_start(ITEMS_COLLECTION, "find", query)
        try:
            cursor = self.collection.find(query, NO_ID).sort(NEWEST_FIRST).skip(skip).limit(limit)
            items = [Item(**doc) async for doc in cursor]
        except Exception as e:
            db_manager.log_query_error(ITEMS_COLLECTION, "find", start, e, query)
            raise
        db_manager.log_query_success(ITEMS_COLLECTION, "find", start, len(items))
        return items

    async def count_for_owner(self, owner_id: str, filters: ItemFilters) -> int:
        return await self.collection.count_documents(self.build_owner_query(owner_id, filters))

    async def list_recent_in_brain(self, brain_id: str, limit: int) -> List[Item]:
        cursor = self.collection.find({"brain_id": brain_id}, NO_ID).sort(NEWEST_FIRST).limit(limit)
        return [Item(**doc) async for doc in cursor]

    async def update_owned(self, item_id: str, owner_id: str, fields: Dict[str, Any]) -> Optional[Item]:
        doc = await self.collection.find_one_and_update(
            {"item_id": item_id, "owner_id": owner_id},
            {"$set": {**fields, "updated_at": utc_now()}},
            projection=NO_ID,
            return_document=ReturnDocument.AFTER,
        )
        return Item(**doc) if doc else None

    async def delete_owned(self, item_id: str, owner_id: str) -> bool:
        result = await self.collection.delete_one({"item_id": item_id, "owner_id": owner_id})
        return result.deleted_count > 0
