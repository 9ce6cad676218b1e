"""
Модели данных

Все сущности неизменяемы: переходы состояний возвращают новые значения
через dataclasses.replace.
"""

import re
import secrets
import string
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from grocery.core.constants import (
    OrderStatus,
    RequestPriority,
    RequestStatus,
    RequestType,
    UserRole,
)


@dataclass(frozen=True)
class AuditRecord:
    """Служебные отметки записи: время создания/изменения и активность"""

    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def new(cls, now: datetime) -> "AuditRecord":
        return cls(created_at=now, updated_at=now, is_active=True)

    def touch(self, now: datetime) -> "AuditRecord":
        """Отметка об изменении записи"""
        return replace(self, updated_at=now)

    def activate(self, now: datetime) -> "AuditRecord":
        return replace(self, is_active=True, updated_at=now)

    def deactivate(self, now: datetime) -> "AuditRecord":
        return replace(self, is_active=False, updated_at=now)


@dataclass(frozen=True)
class Actor:
    """Пользователь, выполняющий действие"""

    id: int
    role: UserRole


@dataclass(frozen=True)
class Account:
    """Модель аккаунта"""

    id: int | None = None
    email: str = ""
    name: str = ""
    role: UserRole = UserRole.CUSTOMER
    password_hash: str = ""
    failed_login_attempts: int = 0
    locked_until: datetime | None = None
    last_login_at: datetime | None = None
    version: int = 1
    audit: AuditRecord = field(default_factory=AuditRecord)

    def as_actor(self) -> Actor:
        """Представление аккаунта как исполнителя действий"""
        if self.id is None:
            raise ValueError("Аккаунт ещё не сохранён")
        return Actor(id=self.id, role=self.role)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class Request:
    """Модель заявки на привилегированное действие"""

    id: int | None = None
    type: RequestType = RequestType.CATEGORY_CREATION
    status: RequestStatus = RequestStatus.PENDING
    requested_by: int | None = None
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    request_data: dict[str, Any] = field(default_factory=dict)
    priority: RequestPriority = RequestPriority.NORMAL
    notes: str = ""
    version: int = 1
    audit: AuditRecord = field(default_factory=AuditRecord)


def slugify(name: str) -> str:
    """
    Slug категории из названия: "Fresh Fruits" → "fresh-fruits"

    Args:
        name: Название

    Returns:
        Slug в нижнем регистре через дефис
    """
    slug = re.sub(r"[^\w\s-]", "", name.lower().strip())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


@dataclass(frozen=True)
class Category:
    """Модель категории товаров"""

    id: int | None = None
    name: str = ""
    description: str = ""
    slug: str = ""
    image_url: str = ""
    parent_id: int | None = None
    sort_order: int = 0
    is_visible: bool = True
    created_by: int | None = None
    version: int = 1
    audit: AuditRecord = field(default_factory=AuditRecord)

    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class OrderItem:
    """Позиция заказа (цена фиксируется на момент оформления)"""

    product_id: str
    product_name: str = ""
    unit_price: float = 0.0
    quantity: int = 1
    unit: str = "piece"

    @property
    def total_price(self) -> float:
        return round(self.unit_price * self.quantity, 2)


def generate_order_number() -> str:
    """
    Генерация номера заказа вида ORD-123456-AB12C

    Returns:
        Номер заказа
    """
    digits = "".join(secrets.choice(string.digits) for _ in range(6))
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(5))
    return f"ORD-{digits}-{suffix}"


@dataclass(frozen=True)
class Order:
    """Модель заказа"""

    id: int | None = None
    order_number: str = field(default_factory=generate_order_number)
    user_id: int | None = None
    items: tuple[OrderItem, ...] = ()
    status: OrderStatus = OrderStatus.PENDING
    total_amount: float = 0.0
    discount_amount: float = 0.0
    shipping_amount: float = 0.0
    tax_amount: float = 0.0
    final_amount: float = 0.0
    shipping_address: str | None = None
    payment_method: str | None = None
    tracking_number: str | None = None
    notes: str = ""
    cancelled_by: int | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    version: int = 1
    audit: AuditRecord = field(default_factory=AuditRecord)
