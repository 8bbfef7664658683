"""
# Share Service

Publishing a brain as a read-only page reachable through an unguessable token.

*   `issue_share_link` is owner-only. Every call stores a fresh 256-bit token and
    marks the brain public, so any previously issued link stops resolving.
*   `resolve_shared_brain` is unauthenticated. It only resolves tokens of brains
    that are currently public, and returns at most `SHARED_BRAIN_ITEM_LIMIT`
    items, newest first.

There is no way to unshare a brain; the token is never cleared.
"""

from typing import Optional

from second_brain.config import settings
from second_brain.exceptions import ConflictError, NotFoundError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.brain_models import Brain, PublicBrainView, ShareLinkResponse, SharedBrainResponse
from second_brain.models.item_models import ItemResponse
from second_brain.repositories.base import BrainRepository, ItemRepository, UserRepository
from second_brain.services.access_control import BRAIN_NOT_FOUND, require_brain_owner
from second_brain.utils.security_utils import generate_share_token

logger = get_logger(prefix="[Share Service]")

SHARED_BRAIN_NOT_FOUND = "Shared brain not found"
TOKEN_ATTEMPTS = 3


def share_url_for(token: str) -> str:
    return f"/shared/{token}"


class ShareService:
    def __init__(self, brains: BrainRepository, items: ItemRepository, users: UserRepository):
        self.brains = brains
        self.items = items
        self.users = users

    async def issue_share_link(self, brain_id: str, requester_id: str) -> ShareLinkResponse:
        """
        Issue (or replace) the share token of a brain owned by the requester.

        Raises:
            NotFoundError: If the brain does not exist or the requester is not its owner.
        """
        await require_brain_owner(self.brains, brain_id, requester_id)

        brain: Optional[Brain] = None
        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            token = generate_share_token()
            try:
                brain = await self.brains.set_share_token(brain_id, requester_id, token)
                break
            except ConflictError:
                # Bounded retry on a unique-index collision.
                logger.warning("Share token collision on attempt %d for brain %s", attempt, brain_id)
                if attempt == TOKEN_ATTEMPTS:
                    raise

        if brain is None:
            raise NotFoundError(BRAIN_NOT_FOUND)

        logger.info("Issued share link for brain %s", brain_id)
        return ShareLinkResponse(share_token=brain.share_token, share_url=share_url_for(brain.share_token))

    async def resolve_shared_brain(self, token: str) -> SharedBrainResponse:
        """
        Resolve a share token to the public view of its brain and recent items.

        Raises:
            NotFoundError: If no public brain carries this token.
        """
        brain = await self.brains.find_public_by_token(token) if token else None
        if brain is None:
            raise NotFoundError(SHARED_BRAIN_NOT_FOUND)

        owner = await self.users.get_by_id(brain.owner_id)
        items = await self.items.list_recent_in_brain(brain.brain_id, settings.SHARED_BRAIN_ITEM_LIMIT)

        view = PublicBrainView(
            brain_id=brain.brain_id,
            name=brain.name,
            description=brain.description,
            owner_username=owner.username if owner else None,
            created_at=brain.created_at,
            updated_at=brain.updated_at,
        )
        return SharedBrainResponse(brain=view, items=[ItemResponse.from_item(i) for i in items])
