from unittest.mock import patch

import pytest

from second_brain.exceptions import ConflictError, NotFoundError, ValidationError


async def make_user(container, username):
    result = await container.auth.register(username, f"{username}@example.com", "secret1")
    return result.user.id


@pytest.mark.asyncio
async def test_create_brain_trims_name_and_rejects_empty(container):
    owner = await make_user(container, "alice")

    brain = await container.brains.create_brain(owner, "  Research  ", "papers")
    assert brain.name == "Research"
    assert brain.owner_id == owner
    assert brain.is_public is False
    assert brain.share_token is None

    with pytest.raises(ValidationError):
        await container.brains.create_brain(owner, "   ")


@pytest.mark.asyncio
async def test_list_brains_includes_owned_and_collaborated_only(container):
    alice = await make_user(container, "alice")
    bob = await make_user(container, "bob")
    carol = await make_user(container, "carol")

    shared = await container.brains.create_brain(alice, "Shared")
    await container.brains.create_brain(alice, "Private")
    await container.brains.add_collaborator(alice, shared.brain_id, "bob")

    bob_brains = {b.name for b in await container.brains.list_brains(bob)}
    carol_brains = {b.name for b in await container.brains.list_brains(carol)}

    assert bob_brains == {"My Brain", "Shared"}
    assert carol_brains == {"My Brain"}


@pytest.mark.asyncio
async def test_list_brains_is_newest_first(container):
    alice = await make_user(container, "alice")
    await container.brains.create_brain(alice, "Second")
    await container.brains.create_brain(alice, "Third")

    names = [b.name for b in await container.brains.list_brains(alice)]
    assert names == ["Third", "Second", "My Brain"]


@pytest.mark.asyncio
async def test_add_collaborator_is_owner_only_and_idempotent(container):
    alice = await make_user(container, "alice")
    bob = await make_user(container, "bob")
    await make_user(container, "carol")
    brain = await container.brains.create_brain(alice, "Team")

    await container.brains.add_collaborator(alice, brain.brain_id, "bob")
    updated = await container.brains.add_collaborator(alice, brain.brain_id, "bob@example.com")
    assert updated.collaborators == [bob]

    with pytest.raises(NotFoundError):
        await container.brains.add_collaborator(bob, brain.brain_id, "carol")
    with pytest.raises(NotFoundError):
        await container.brains.add_collaborator(alice, brain.brain_id, "nobody")


@pytest.mark.asyncio
async def test_issue_share_link_is_owner_only(container):
    alice = await make_user(container, "alice")
    bob = await make_user(container, "bob")
    stranger = await make_user(container, "mallory")
    brain = await container.brains.create_brain(alice, "Team")
    await container.brains.add_collaborator(alice, brain.brain_id, "bob")

    for requester in (bob, stranger):
        with pytest.raises(NotFoundError):
            await container.shares.issue_share_link(brain.brain_id, requester)

    link = await container.shares.issue_share_link(brain.brain_id, alice)
    assert len(link.share_token) == 64
    int(link.share_token, 16)
    assert link.share_url == f"/shared/{link.share_token}"


@pytest.mark.asyncio
async def test_reissuing_share_link_invalidates_previous_token(container):
    alice = await make_user(container, "alice")
    brain = await container.brains.create_brain(alice, "Public")

    first = await container.shares.issue_share_link(brain.brain_id, alice)
    second = await container.shares.issue_share_link(brain.brain_id, alice)

    assert first.share_token != second.share_token
    with pytest.raises(NotFoundError):
        await container.shares.resolve_shared_brain(first.share_token)
    resolved = await container.shares.resolve_shared_brain(second.share_token)
    assert resolved.brain.brain_id == brain.brain_id


@pytest.mark.asyncio
async def test_resolve_requires_public_brain(container, repositories):
    alice = await make_user(container, "alice")
    brain = await container.brains.create_brain(alice, "Public")
    link = await container.shares.issue_share_link(brain.brain_id, alice)

    stored = await repositories.brains.get_by_id(brain.brain_id)
    repositories.brains._store.put(brain.brain_id, stored.model_copy(update={"is_public": False}))

    with pytest.raises(NotFoundError):
        await container.shares.resolve_shared_brain(link.share_token)
    with pytest.raises(NotFoundError):
        await container.shares.resolve_shared_brain("")


@pytest.mark.asyncio
async def test_resolve_returns_at_most_fifty_items_newest_first(container):
    alice = await make_user(container, "alice")
    brain = await container.brains.create_brain(alice, "Big")
    for n in range(55):
        await container.items.create_item(alice, brain.brain_id, f"Note {n}", "note")
    link = await container.shares.issue_share_link(brain.brain_id, alice)

    shared = await container.shares.resolve_shared_brain(link.share_token)

    assert len(shared.items) == 50
    assert shared.items[0].title == "Note 54"
    assert shared.items[-1].title == "Note 5"
    assert shared.brain.owner_username == "alice"
    assert "share_token" not in shared.brain.model_dump()


@pytest.mark.asyncio
async def test_share_token_collision_is_retried(container):
    alice = await make_user(container, "alice")
    brain = await container.brains.create_brain(alice, "Public")
    original = container.shares.brains.set_share_token
    attempts = []

    async def collide_once(brain_id, owner_id, token):
        attempts.append(token)
        if len(attempts) == 1:
            raise ConflictError("A record with this share_token already exists")
        return await original(brain_id, owner_id, token)

    container.shares.brains.set_share_token = collide_once
    with patch("second_brain.services.share_service.generate_share_token", side_effect=["a" * 64, "b" * 64]):
        link = await container.shares.issue_share_link(brain.brain_id, alice)

    assert attempts == ["a" * 64, "b" * 64]
    assert link.share_token == "b" * 64
