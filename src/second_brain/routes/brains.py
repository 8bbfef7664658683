"""
# Brain Routes

## API Endpoints

- `POST /brains` - Create a brain (201)
- `GET /brains` - List brains the caller owns or collaborates on
- `POST /brains/{brain_id}/share` - Issue a new share link (owner only)
- `POST /brains/{brain_id}/collaborators` - Add a collaborator (owner only)
- `GET /brains/shared/{token}` - Public, unauthenticated view of a shared brain

Brains the caller may not see are reported as 404, exactly like missing ones.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from second_brain.dependencies import ServiceContainer, get_container, get_current_user_id
from second_brain.exceptions import SecondBrainError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.brain_models import (
    AddCollaboratorRequest,
    BrainResponse,
    CreateBrainRequest,
    ShareLinkResponse,
    SharedBrainResponse,
)

logger = get_logger(prefix="[Brain Routes]")

router = APIRouter(prefix="/brains", tags=["Brains"])


@router.post("", response_model=BrainResponse, status_code=status.HTTP_201_CREATED)
async def create_brain(
    request: CreateBrainRequest,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    try:
        brain = await container.brains.create_brain(user_id, request.name, request.description)
        return BrainResponse.from_brain(brain)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to create brain: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[BrainResponse])
async def list_brains(
    user_id: str = Depends(get_current_user_id), container: ServiceContainer = Depends(get_container)
):
    """List every brain the caller owns or collaborates on, newest first."""
    try:
        return [BrainResponse.from_brain(b) for b in await container.brains.list_brains(user_id)]
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to list brains: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{brain_id}/share", response_model=ShareLinkResponse)
async def share_brain(
    brain_id: str,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    """
    Make a brain public and issue a fresh share token.

    Any previously issued token for this brain stops working.

    Raises:
        HTTPException(404): If the brain does not exist or the caller is not its owner.
    """
    try:
        return await container.shares.issue_share_link(brain_id, user_id)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to share brain %s: %s", brain_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{brain_id}/collaborators", response_model=BrainResponse)
async def add_collaborator(
    brain_id: str,
    request: AddCollaboratorRequest,
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    try:
        brain = await container.brains.add_collaborator(user_id, brain_id, request.identifier)
        return BrainResponse.from_brain(brain)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to add collaborator to brain %s: %s", brain_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/shared/{token}", response_model=SharedBrainResponse)
async def get_shared_brain(token: str, container: ServiceContainer = Depends(get_container)):
    """
    Resolve a share token. No authentication required.

    Returns the brain's public view and up to 50 of its most recent items.

    Raises:
        HTTPException(404): If the token is unknown or the brain is not public.
    """
    try:
        return await container.shares.resolve_shared_brain(token)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to resolve shared brain: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
