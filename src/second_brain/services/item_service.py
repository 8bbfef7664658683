"""
# Item Service

The content API: creating, listing, patching and deleting items.

**Creation:**
1.  Validate title and type, then check the caller may access the target brain.
2.  If a URL is given, try to extract page metadata. A failed fetch is logged and
    the item is saved without metadata.
3.  Caller-supplied title and description win over extracted values; description
    falls back to `""`.

**Listing** is always scoped to items the caller owns, even inside brains shared
with them. Results are newest first and paginated (1-based pages).

**Update and delete** are filtered on `owner_id`, so brain collaborators cannot
touch each other's items. A miss is reported as `NotFoundError`.
"""

import math
from typing import Any, Dict, List, Optional

from second_brain.config import settings
from second_brain.exceptions import NotFoundError, UpstreamError, ValidationError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.item_models import (
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
from second_brain.repositories.base import BrainRepository, ItemRepository
from second_brain.services.access_control import require_brain_access
from second_brain.services.metadata_service import MetadataService
from second_brain.utils.logging_utils import log_performance
from second_brain.utils.security_utils import new_id

logger = get_logger(prefix="[Item Service]")

ITEM_NOT_FOUND = "Item not found"


def _coerce_type(value: Any) -> ItemType:
    try:
        return ItemType(value.value if isinstance(value, ItemType) else value)
    except ValueError:
        allowed = ", ".join(t.value for t in ItemType)
        raise ValidationError.for_field("type", f"Type must be one of: {allowed}")


class ItemService:
    def __init__(self, items: ItemRepository, brains: BrainRepository, metadata: MetadataService):
        self.items = items
        self.brains = brains
        self.metadata = metadata

    async def _extract_metadata(self, url: str) -> Optional[ItemMetadata]:
        try:
            return await self.metadata.extract_metadata(url)
        except UpstreamError as e:
            logger.warning("Metadata extraction failed for %s: %s", url, e.message)
            return None

    @log_performance("create_item")
    async def create_item(
        self,
        requester_id: str,
        brain_id: str,
        title: str,
        type: Any,
        url: Optional[str] = None,
        content: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Item:
        """
        Save a new item into a brain the requester can access.

        Args:
            requester_id (str): The creating user; becomes the item owner.
            brain_id (str): Target brain (owned or collaborated).
            title (str): Required, non-empty after trimming.
            type: One of `link`, `article`, `video`, `note`.
            url (Optional[str]): Source URL; triggers metadata extraction.
            content (Optional[str]): Free text.
            description (Optional[str]): Short description.
            tags (Optional[List[str]]): Tags; trimmed, empties dropped.

        Returns:
            Item: The stored item.

        Raises:
            ValidationError: If the title is empty or the type unknown.
            NotFoundError: If the brain is missing or not accessible.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError.for_field("title", "Title is required")
        item_type = _coerce_type(type)

        await require_brain_access(self.brains, brain_id, requester_id)

        metadata = await self._extract_metadata(url) if url else None

        item = Item(
            item_id=new_id("itm"),
            title=title,
            type=item_type,
            url=url,
            content=content,
            description=description or (metadata.description if metadata else None) or "",
            tags=normalize_tags(tags),
            owner_id=requester_id,
            brain_id=brain_id,
            metadata=metadata,
        )
        created = await self.items.create(item)
        logger.info("Created item %s in brain %s for user %s", created.item_id, brain_id, requester_id)
        return created

    @log_performance("list_items")
    async def list_items(
        self,
        requester_id: str,
        filters: Optional[ItemFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ItemPage:
        """
        List the requester's own items matching the filters.

        `page` is 1-based; `limit` defaults to `DEFAULT_PAGE_SIZE` and is capped at
        `MAX_PAGE_SIZE`.
        """
        filters = filters or ItemFilters()
        page = max(page or 1, 1)
        limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)

        total = await self.items.count_for_owner(requester_id, filters)
        items = await self.items.list_for_owner(requester_id, filters, skip=(page - 1) * limit, limit=limit)

        return ItemPage(
            items=[ItemResponse.from_item(i) for i in items],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    async def update_item(self, requester_id: str, item_id: str, patch: UpdateItemRequest) -> Item:
        """
        Overwrite only the fields present in `patch` on an item the requester owns.

        Raises:
            ValidationError: If the patch sets an empty title.
            NotFoundError: If no item with this id is owned by the requester.
        """
        fields: Dict[str, Any] = patch.model_dump(exclude_unset=True)
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError.for_field("title", "Title cannot be empty")
        if "type" in fields:
            if fields["type"] is None:
                raise ValidationError.for_field("type", "Type cannot be empty")
            fields["type"] = _coerce_type(fields["type"]).value
        if "tags" in fields:
            fields["tags"] = normalize_tags(fields["tags"])

        updated = await self.items.update_owned(item_id, requester_id, fields)
        if updated is None:
            raise NotFoundError(ITEM_NOT_FOUND)
        logger.info("Updated item %s (%s)", item_id, ", ".join(sorted(fields)) or "no fields")
        return updated

    async def delete_item(self, requester_id: str, item_id: str) -> None:
        """
        Delete an item the requester owns.

        Raises:
            NotFoundError: If no item with this id is owned by the requester.
        """
        if not await self.items.delete_owned(item_id, requester_id):
            raise NotFoundError(ITEM_NOT_FOUND)
        logger.info("Deleted item %s for user %s", item_id, requester_id)
