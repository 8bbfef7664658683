"""
# Access Control

Ownership and collaboration checks that gate every brain and item operation.

**Rules:**
*   A brain is accessible to its owner and to every collaborator (read + create items).
*   Publishing a brain and adding collaborators is owner-only.
*   Updating or deleting an item requires being the item's owner; brain access alone
    is not enough. That check is enforced by the owner-scoped repository queries.

Every failed check raises `NotFoundError`, never a "forbidden" error, so a caller
cannot tell a brain it may not see from one that does not exist.
"""

from second_brain.exceptions import NotFoundError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.brain_models import Brain
from second_brain.repositories.base import BrainRepository

logger = get_logger(prefix="[Access Control]")

BRAIN_NOT_FOUND = "Brain not found"


def can_access_brain(brain: Brain, user_id: str) -> bool:
    return brain.is_member(user_id)


def is_brain_owner(brain: Brain, user_id: str) -> bool:
    return brain.owner_id == user_id


async def require_brain_access(brains: BrainRepository, brain_id: str, user_id: str) -> Brain:
    """
    Load a brain the user may read and add items to.

    Raises:
        NotFoundError: If the brain does not exist or the user is neither owner nor collaborator.
    """
    brain = await brains.find_accessible(brain_id, user_id)
    if brain is None:
        logger.info("Denied brain access: brain=%s user=%s", brain_id, user_id)
        raise NotFoundError(BRAIN_NOT_FOUND)
    return brain


async def require_brain_owner(brains: BrainRepository, brain_id: str, user_id: str) -> Brain:
    """
    Load a brain the user owns.

    Raises:
        NotFoundError: If the brain does not exist or belongs to someone else.
    """
    brain = await brains.find_owned(brain_id, user_id)
    if brain is None:
        logger.info("Denied owner-only brain operation: brain=%s user=%s", brain_id, user_id)
        raise NotFoundError(BRAIN_NOT_FOUND)
    return brain
