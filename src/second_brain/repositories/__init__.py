"""
Persistence layer: repository interfaces and their MongoDB / in-memory implementations.

`build_repositories()` picks the implementation set from `settings.STORAGE_BACKEND`.
"""

from dataclasses import dataclass
from typing import Optional

from second_brain.config import settings
from second_brain.repositories.base import BrainRepository, ItemRepository, UserRepository
from second_brain.repositories.memory import InMemoryBrainRepository, InMemoryItemRepository, InMemoryUserRepository
from second_brain.repositories.mongo import MongoBrainRepository, MongoItemRepository, MongoUserRepository


@dataclass
class Repositories:
    users: UserRepository
    brains: BrainRepository
    items: ItemRepository


def build_repositories(backend: Optional[str] = None) -> Repositories:
    backend = backend or settings.STORAGE_BACKEND
    if backend == "memory":
        return Repositories(
            users=InMemoryUserRepository(), brains=InMemoryBrainRepository(), items=InMemoryItemRepository()
        )
    return Repositories(users=MongoUserRepository(), brains=MongoBrainRepository(), items=MongoItemRepository())


__all__ = [
    "BrainRepository",
    "ItemRepository",
    "Repositories",
    "UserRepository",
    "build_repositories",
]
