from datetime import datetime, timezone

import pytest

from second_brain.exceptions import NotFoundError, UpstreamError, ValidationError
from second_brain.models.item_models import ItemFilters, ItemMetadata, ItemType, UpdateItemRequest


async def make_user(container, username):
    result = await container.auth.register(username, f"{username}@example.com", "secret1")
    user_id = result.user.id
    brain = (await container.brains.list_brains(user_id))[0]
    return user_id, brain.brain_id


@pytest.mark.asyncio
async def test_create_item_normalizes_tags_and_defaults_description(container):
    alice, brain_id = await make_user(container, "alice")

    item = await container.items.create_item(alice, brain_id, "  Notes  ", "note", tags=["a", " b ", ""])

    assert item.title == "Notes"
    assert item.type == "note"
    assert item.tags == ["a", "b"]
    assert item.description == ""
    assert item.metadata is None
    assert item.owner_id == alice
    assert item.brain_id == brain_id


@pytest.mark.asyncio
async def test_create_item_uses_extracted_description(container, metadata_service):
    alice, brain_id = await make_user(container, "alice")
    metadata_service.extract_metadata.side_effect = None
    metadata_service.extract_metadata.return_value = ItemMetadata(
        title="A Paper", description="An abstract", author="Ada", published_at=datetime(2024, 1, 2, tzinfo=timezone.utc)
    )

    item = await container.items.create_item(alice, brain_id, "Paper", "article", url="https://papers.test/1")

    metadata_service.extract_metadata.assert_awaited_once_with("https://papers.test/1")
    assert item.title == "Paper"
    assert item.description == "An abstract"
    assert item.metadata.author == "Ada"


@pytest.mark.asyncio
async def test_caller_description_wins_over_extracted(container, metadata_service):
    alice, brain_id = await make_user(container, "alice")
    metadata_service.extract_metadata.side_effect = None
    metadata_service.extract_metadata.return_value = ItemMetadata(description="From page")

    item = await container.items.create_item(
        alice, brain_id, "Paper", "article", url="https://papers.test/1", description="Mine"
    )

    assert item.description == "Mine"


@pytest.mark.asyncio
async def test_failed_metadata_fetch_does_not_block_creation(container, metadata_service):
    alice, brain_id = await make_user(container, "alice")
    metadata_service.extract_metadata.side_effect = UpstreamError("timed out")

    item = await container.items.create_item(alice, brain_id, "Paper", "article", url="https://slow.test")

    assert item.description == ""
    assert item.metadata is None
    assert item.url == "https://slow.test"


@pytest.mark.asyncio
async def test_create_item_validates_title_and_type(container):
    alice, brain_id = await make_user(container, "alice")

    with pytest.raises(ValidationError):
        await container.items.create_item(alice, brain_id, "   ", "note")
    with pytest.raises(ValidationError) as exc:
        await container.items.create_item(alice, brain_id, "Title", "podcast")
    assert exc.value.errors[0]["field"] == "type"


@pytest.mark.asyncio
async def test_strangers_cannot_create_items_in_foreign_brain(container):
    alice, _ = await make_user(container, "alice")
    brain = await container.brains.create_brain(alice, "Private")
    bob, _ = await make_user(container, "bob")
    carol, _ = await make_user(container, "carol")

    for stranger in (bob, carol):
        with pytest.raises(NotFoundError):
            await container.items.create_item(stranger, brain.brain_id, "Sneaky", "note")

    assert (await container.items.list_items(alice)).pagination.total == 0


@pytest.mark.asyncio
async def test_collaborator_can_create_but_not_modify_others_items(container):
    alice, _ = await make_user(container, "alice")
    bob, _ = await make_user(container, "bob")
    brain = await container.brains.create_brain(alice, "Team")
    await container.brains.add_collaborator(alice, brain.brain_id, "bob")

    alice_item = await container.items.create_item(alice, brain.brain_id, "Alice's", "note")
    bob_item = await container.items.create_item(bob, brain.brain_id, "Bob's", "note")
    assert bob_item.owner_id == bob

    with pytest.raises(NotFoundError):
        await container.items.update_item(bob, alice_item.item_id, UpdateItemRequest(title="Hijacked"))
    with pytest.raises(NotFoundError):
        await container.items.delete_item(bob, alice_item.item_id)
    with pytest.raises(NotFoundError):
        await container.items.delete_item(alice, bob_item.item_id)


@pytest.mark.asyncio
async def test_list_items_is_scoped_to_owner_even_in_shared_brain(container):
    alice, _ = await make_user(container, "alice")
    bob, _ = await make_user(container, "bob")
    brain = await container.brains.create_brain(alice, "Team")
    await container.brains.add_collaborator(alice, brain.brain_id, "bob")
    await container.items.create_item(alice, brain.brain_id, "Alice's", "note")
    await container.items.create_item(bob, brain.brain_id, "Bob's", "note")

    bob_page = await container.items.list_items(bob, ItemFilters(brain_id=brain.brain_id))

    assert [i.title for i in bob_page.items] == ["Bob's"]


@pytest.mark.asyncio
async def test_list_items_filters(container):
    alice, brain_id = await make_user(container, "alice")
    other = await container.brains.create_brain(alice, "Other")
    await container.items.create_item(alice, brain_id, "Asyncio deep dive", "article", tags=["python"])
    await container.items.create_item(alice, brain_id, "Cooking video", "video", tags=["food"])
    await container.items.create_item(
        alice, other.brain_id, "Groceries", "note", content="eggs and python snacks", tags=["food", "list"]
    )

    async def titles(**filters):
        page = await container.items.list_items(alice, ItemFilters(**filters))
        return [i.title for i in page.items]

    assert await titles(brain_id=other.brain_id) == ["Groceries"]
    assert await titles(type=ItemType.VIDEO) == ["Cooking video"]
    assert await titles(tags="python,list") == ["Groceries", "Asyncio deep dive"]
    assert await titles(search="PYTHON") == ["Groceries"]
    assert await titles(search="cooking eggs") == ["Groceries", "Cooking video"]
    assert await titles(search="asyncio", tags=["python"]) == ["Asyncio deep dive"]


@pytest.mark.asyncio
async def test_list_items_pagination(container):
    alice, brain_id = await make_user(container, "alice")
    for n in range(25):
        await container.items.create_item(alice, brain_id, f"Item {n}", "note")

    first = await container.items.list_items(alice)
    assert first.pagination.model_dump() == {"page": 1, "limit": 20, "total": 25, "pages": 2}
    assert first.items[0].title == "Item 24"

    second = await container.items.list_items(alice, page=2, limit=10)
    assert [i.title for i in second.items] == [f"Item {n}" for n in range(14, 4, -1)]
    assert second.pagination.pages == 3

    capped = await container.items.list_items(alice, limit=1000)
    assert capped.pagination.limit == 100

    past_end = await container.items.list_items(alice, page=9)
    assert past_end.items == []
    assert past_end.pagination.total == 25


@pytest.mark.asyncio
async def test_update_item_patches_only_supplied_fields(container):
    alice, brain_id = await make_user(container, "alice")
    item = await container.items.create_item(alice, brain_id, "Draft", "note", content="body", tags=["x"])

    updated = await container.items.update_item(
        alice, item.item_id, UpdateItemRequest(title="Final", tags=[" y ", ""], type=ItemType.ARTICLE)
    )

    assert updated.title == "Final"
    assert updated.type == "article"
    assert updated.tags == ["y"]
    assert updated.content == "body"
    assert updated.brain_id == brain_id
    assert updated.owner_id == alice
    assert updated.updated_at >= item.updated_at


@pytest.mark.asyncio
async def test_update_item_ignores_ownership_fields(container):
    alice, brain_id = await make_user(container, "alice")
    item = await container.items.create_item(alice, brain_id, "Draft", "note")

    patch = UpdateItemRequest.model_validate({"title": "Moved?", "owner_id": "usr_x", "brain_id": "brn_x"})
    updated = await container.items.update_item(alice, item.item_id, patch)

    assert updated.owner_id == alice
    assert updated.brain_id == brain_id


@pytest.mark.asyncio
async def test_delete_item(container):
    alice, brain_id = await make_user(container, "alice")
    item = await container.items.create_item(alice, brain_id, "Temp", "note")

    await container.items.delete_item(alice, item.item_id)

    assert (await container.items.list_items(alice)).pagination.total == 0
    with pytest.raises(NotFoundError):
        await container.items.delete_item(alice, item.item_id)
