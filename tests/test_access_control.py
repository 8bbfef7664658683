import pytest

from second_brain.exceptions import NotFoundError
from second_brain.models.brain_models import Brain
from second_brain.services.access_control import (
    can_access_brain,
    is_brain_owner,
    require_brain_access,
    require_brain_owner,
)


def make_brain(**overrides):
    fields = {"brain_id": "brn_1", "name": "Reading", "owner_id": "usr_owner", "collaborators": ["usr_collab"]}
    fields.update(overrides)
    return Brain(**fields)


def test_owner_and_collaborators_can_access():
    brain = make_brain()
    assert can_access_brain(brain, "usr_owner")
    assert can_access_brain(brain, "usr_collab")
    assert not can_access_brain(brain, "usr_stranger")


def test_only_owner_is_owner():
    brain = make_brain()
    assert is_brain_owner(brain, "usr_owner")
    assert not is_brain_owner(brain, "usr_collab")


@pytest.mark.asyncio
async def test_require_brain_access(repositories):
    await repositories.brains.create(make_brain())

    brain = await require_brain_access(repositories.brains, "brn_1", "usr_collab")
    assert brain.brain_id == "brn_1"

    with pytest.raises(NotFoundError) as missing:
        await require_brain_access(repositories.brains, "brn_missing", "usr_owner")
    with pytest.raises(NotFoundError) as hidden:
        await require_brain_access(repositories.brains, "brn_1", "usr_stranger")

    # A brain the caller cannot see is indistinguishable from a missing one.
    assert missing.value.message == hidden.value.message


@pytest.mark.asyncio
async def test_require_brain_owner_rejects_collaborators(repositories):
    await repositories.brains.create(make_brain())

    assert (await require_brain_owner(repositories.brains, "brn_1", "usr_owner")).owner_id == "usr_owner"
    with pytest.raises(NotFoundError):
        await require_brain_owner(repositories.brains, "brn_1", "usr_collab")
