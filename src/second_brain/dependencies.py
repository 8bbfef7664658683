"""
# Dependencies

FastAPI dependency providers.

*   `get_container()` builds the repositories (per `STORAGE_BACKEND`) and the
    services on first use and caches them for the life of the process. Tests
    swap it out through `app.dependency_overrides`.
*   `get_current_user_id()` authenticates the `Authorization: Bearer <token>`
    header and yields the user id from the token's `sub` claim.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from second_brain.config import settings
from second_brain.exceptions import AuthenticationError
from second_brain.repositories import Repositories, build_repositories
from second_brain.services.auth_service import AuthService, GoogleTokenVerifier
from second_brain.services.brain_service import BrainService
from second_brain.services.item_service import ItemService
from second_brain.services.metadata_service import MetadataService
from second_brain.services.share_service import ShareService
from second_brain.utils.security_utils import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


@dataclass
class ServiceContainer:
    repositories: Repositories
    auth: AuthService
    brains: BrainService
    shares: ShareService
    items: ItemService


def build_container(
    repositories: Optional[Repositories] = None,
    metadata: Optional[MetadataService] = None,
    google: Optional[GoogleTokenVerifier] = None,
) -> ServiceContainer:
    repositories = repositories or build_repositories()
    brain_service = BrainService(repositories.brains, repositories.users)
    return ServiceContainer(
        repositories=repositories,
        auth=AuthService(repositories.users, brain_service, google or GoogleTokenVerifier()),
        brains=brain_service,
        shares=ShareService(repositories.brains, repositories.items, repositories.users),
        items=ItemService(repositories.items, repositories.brains, metadata or MetadataService()),
    )


@lru_cache()
def get_container() -> ServiceContainer:
    return build_container()


async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """
    Resolve the bearer token to a user id.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid or expired.
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    return decode_access_token(token)
