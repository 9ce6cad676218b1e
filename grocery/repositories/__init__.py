"""
Repository layer для абстракции работы с базой данных
"""

from grocery.repositories.account_repository import AccountRepository
from grocery.repositories.base import BaseRepository
from grocery.repositories.category_repository import CategoryRepository
from grocery.repositories.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    IntegrityError,
    RepositoryError,
)
from grocery.repositories.locks import EntityLocks
from grocery.repositories.order_repository import OrderRepository
from grocery.repositories.request_repository import RequestRepository


__all__ = [
    "AccountRepository",
    "BaseRepository",
    "CategoryRepository",
    "ConcurrentModificationError",
    "EntityLocks",
    "EntityNotFoundError",
    "IntegrityError",
    "OrderRepository",
    "RepositoryError",
    "RequestRepository",
]
