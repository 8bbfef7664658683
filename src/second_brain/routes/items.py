"""
# Item Routes

## API Endpoints

- `POST /items` - Save an item into an accessible brain (201)
- `GET /items` - List the caller's items (filters: `brain_id`, `type`, `tags`, `search`; paginated)
- `PUT /items/{item_id}` - Patch an item the caller owns
- `DELETE /items/{item_id}` - Delete an item the caller owns

## Usage Example

```python
response = await client.get(
    "/api/v1/items",
    params={"tags": "python,reading", "search": "asyncio", "page": 2, "limit": 10},
    headers={"Authorization": f"Bearer {token}"},
)
items, pagination = response.json()["items"], response.json()["pagination"]
```
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from second_brain.dependencies import ServiceContainer, get_container, get_current_user_id
from second_brain.exceptions import SecondBrainError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.item_models import (
    CreateItemRequest,
    DeleteItemResponse,
    ItemFilters,
    ItemPage,
    ItemResponse,
    ItemType,
    UpdateItemRequest,
)

logger = get_logger(prefix="[Item Routes]")

router = APIRouter(prefix="/items", tags=["Items"])


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: CreateItemRequest,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """
    Save a new item.

    If a `url` is given, page metadata is fetched on a best-effort basis; a failed
    fetch never blocks creation.

    Raises:
        HTTPException(400): If the title is empty or the type unknown.
        HTTPException(404): If the brain does not exist or is not accessible.
    """
    try:
        item = await container.items.create_item(
            user_id,
            brain_id=request.brain_id,
            title=request.title,
            type=request.type,
            url=request.url,
            content=request.content,
            description=request.description,
            tags=request.tags,
        )
        return ItemResponse.from_item(item)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to create item: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=ItemPage)
async def list_items(
    brain_id: Optional[str] = Query(None, description="Only items in this brain"),
    type: Optional[ItemType] = Query(None, description="Only items of this type"),
    tags: Optional[str] = Query(None, description="Comma-separated tags; any match"),
    search: Optional[str] = Query(None, description="Free-text search over title, description and content"),
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: Optional[int] = Query(None, ge=1, description="Page size (default 20, max 100)"),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """List the caller's own items, newest first."""
    try:
        filters = ItemFilters(brain_id=brain_id, type=type, tags=tags or [], search=search)
        return await container.items.list_items(user_id, filters, page=page, limit=limit)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to list items: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    request: UpdateItemRequest,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """
    Overwrite the supplied fields of an item the caller owns.

    Raises:
        HTTPException(404): If the item does not exist or belongs to someone else.
    """
    try:
        return ItemResponse.from_item(await container.items.update_item(user_id, item_id, request))
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to update item %s: %s", item_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{item_id}", response_model=DeleteItemResponse)
async def delete_item(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    try:
        await container.items.delete_item(user_id, item_id)
        return DeleteItemResponse()
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to delete item %s: %s", item_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
