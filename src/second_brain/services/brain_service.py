"""
# Brain Service

Creating and listing brains, and managing their collaborators.

A user sees every brain they own or collaborate on, newest first. Adding a
collaborator is owner-only and idempotent; the collaborator is resolved by
username or e-mail.
"""

from typing import List, Optional

from second_brain.config import settings
from second_brain.exceptions import NotFoundError, ValidationError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.brain_models import Brain
from second_brain.repositories.base import BrainRepository, UserRepository
from second_brain.services.access_control import BRAIN_NOT_FOUND, require_brain_owner
from second_brain.utils.security_utils import new_id

logger = get_logger(prefix="[Brain Service]")


class BrainService:
    def __init__(self, brains: BrainRepository, users: UserRepository):
        self.brains = brains
        self.users = users

    async def create_brain(self, requester_id: str, name: str, description: Optional[str] = None) -> Brain:
        """
        Create a brain owned by the requester.

        Raises:
            ValidationError: If the name is empty after trimming.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError.for_field("name", "Brain name is required")

        brain = Brain(brain_id=new_id("brn"), name=name, description=description, owner_id=requester_id)
        created = await self.brains.create(brain)
        logger.info("Created brain %s for user %s", created.brain_id, requester_id)
        return created

    async def create_default_brain(self, user_id: str) -> Brain:
        return await self.create_brain(
            user_id, settings.DEFAULT_BRAIN_NAME, description=settings.DEFAULT_BRAIN_DESCRIPTION
        )

    async def list_brains(self, requester_id: str) -> List[Brain]:
        return await self.brains.list_for_member(requester_id)

    async def add_collaborator(self, requester_id: str, brain_id: str, identifier: str) -> Brain:
        """
        Grant a user read and create access to a brain the requester owns.

        Args:
            requester_id (str): Must be the brain owner.
            brain_id (str): Target brain.
            identifier (str): Username or e-mail of the user to add.

        Returns:
            Brain: The updated brain.

        Raises:
            NotFoundError: If the brain is not owned by the requester or the user is unknown.
        """
        await require_brain_owner(self.brains, brain_id, requester_id)

        identifier = (identifier or "").strip()
        if "@" in identifier:
            user = await self.users.get_by_email(identifier)
        else:
            user = await self.users.get_by_username(identifier)
        if user is None:
            raise NotFoundError("User not found")

        if user.user_id == requester_id:
            # The owner already has full access.
            return await require_brain_owner(self.brains, brain_id, requester_id)

        brain = await self.brains.add_collaborator(brain_id, requester_id, user.user_id)
        if brain is None:
            raise NotFoundError(BRAIN_NOT_FOUND)
        logger.info("Added collaborator %s to brain %s", user.user_id, brain_id)
        return brain
