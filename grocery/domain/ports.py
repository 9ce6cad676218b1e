"""
Интерфейсы хранилищ и внешних зависимостей доменного слоя

Сервисы зависят от этих протоколов, а не от конкретных репозиториев:
в тестах их можно подменить in-memory реализациями.
"""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from grocery.core.constants import RequestPriority, RequestType
from grocery.database.models import Account, Category, Order, Request


@dataclass(frozen=True)
class RequestFilter:
    """Фильтр очереди ожидающих заявок"""

    type: RequestType | None = None
    priority: RequestPriority | None = None
    requested_by: int | None = None
    limit: int | None = None


class Clock(Protocol):
    def now(self) -> datetime: ...


class PasswordVerifier(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class LockingStore(Protocol):
    def locked(self, entity_id: object) -> AbstractAsyncContextManager[None]: ...

    def transaction(self) -> AbstractAsyncContextManager[Any]: ...


class AccountStore(LockingStore, Protocol):
    async def create(self, account: Account) -> Account: ...

    async def load(self, account_id: int) -> Account: ...

    async def get_by_email(self, email: str) -> Account | None: ...

    async def save(self, account: Account) -> Account: ...


class RequestStore(LockingStore, Protocol):
    async def create(self, request: Request) -> Request: ...

    async def load(self, request_id: int) -> Request: ...

    async def save(self, request: Request) -> Request: ...

    async def list_pending(self, request_filter: RequestFilter | None = None) -> list[Request]: ...


class OrderStore(LockingStore, Protocol):
    async def create(self, order: Order, created_by: int | None = None) -> Order: ...

    async def load(self, order_id: int) -> Order: ...

    async def save(self, order: Order, changed_by: int | None = None) -> Order: ...

    async def get_status_history(self, order_id: int) -> list[dict]: ...


class CategoryStore(LockingStore, Protocol):
    async def create(self, category: Category) -> Category: ...

    async def load(self, category_id: int) -> Category: ...

    async def save(self, category: Category) -> Category: ...

    async def list_visible(self) -> list[Category]: ...
