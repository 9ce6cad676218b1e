"""
Константы приложения - роли, статусы, типы заявок, политика блокировки
"""

from datetime import timedelta
from enum import Enum


# Политика блокировки аккаунта (фиксированные бизнес-константы)
MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(hours=2)


class UserRole(str, Enum):
    """Роли пользователей"""

    ADMIN = "admin"
    STORE_MANAGER = "store_manager"
    CUSTOMER = "customer"

    @classmethod
    def all_roles(cls) -> list["UserRole"]:
        """Список всех ролей"""
        return [cls.ADMIN, cls.STORE_MANAGER, cls.CUSTOMER]

    @classmethod
    def get_role_name(cls, role: str) -> str:
        """Получение названия роли на русском"""
        names = {
            cls.ADMIN: "Администратор",
            cls.STORE_MANAGER: "Управляющий магазином",
            cls.CUSTOMER: "Покупатель",
        }
        return names.get(role, str(role))


class OrderStatus(str, Enum):
    """Статусы заказов"""

    PENDING = "pending"  # Оформлен, ожидает подтверждения
    CONFIRMED = "confirmed"  # Подтверждён
    PROCESSING = "processing"  # Собирается
    SHIPPED = "shipped"  # Передан в доставку
    DELIVERED = "delivered"  # Доставлен
    CANCELLED = "cancelled"  # Отменён

    @classmethod
    def all_statuses(cls) -> list["OrderStatus"]:
        """Список всех статусов"""
        return [
            cls.PENDING,
            cls.CONFIRMED,
            cls.PROCESSING,
            cls.SHIPPED,
            cls.DELIVERED,
            cls.CANCELLED,
        ]

    @classmethod
    def get_status_emoji(cls, status: str) -> str:
        """Получение эмодзи для статуса"""
        emojis = {
            cls.PENDING: "🆕",
            cls.CONFIRMED: "✅",
            cls.PROCESSING: "📦",
            cls.SHIPPED: "🚚",
            cls.DELIVERED: "🏠",
            cls.CANCELLED: "❌",
        }
        return emojis.get(status, "")

    @classmethod
    def get_status_name(cls, status: str) -> str:
        """Получение названия статуса на русском"""
        names = {
            cls.PENDING: "Ожидает подтверждения",
            cls.CONFIRMED: "Подтверждён",
            cls.PROCESSING: "Собирается",
            cls.SHIPPED: "В доставке",
            cls.DELIVERED: "Доставлен",
            cls.CANCELLED: "Отменён",
        }
        return names.get(status, str(status))


class RequestType(str, Enum):
    """Типы заявок на привилегированные действия"""

    STORE_MANAGER_APPROVAL = "store_manager_approval"
    CATEGORY_CREATION = "category_creation"
    CATEGORY_MODIFICATION = "category_modification"

    @classmethod
    def all_types(cls) -> list["RequestType"]:
        """Список всех типов заявок"""
        return [cls.STORE_MANAGER_APPROVAL, cls.CATEGORY_CREATION, cls.CATEGORY_MODIFICATION]

    @classmethod
    def category_types(cls) -> set["RequestType"]:
        """Типы заявок, относящиеся к категориям"""
        return {cls.CATEGORY_CREATION, cls.CATEGORY_MODIFICATION}


class RequestStatus(str, Enum):
    """Статусы заявок"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def all_statuses(cls) -> list["RequestStatus"]:
        """Список всех статусов заявок"""
        return [cls.PENDING, cls.APPROVED, cls.REJECTED]


class RequestPriority(str, Enum):
    """Приоритеты заявок"""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def all_priorities(cls) -> list["RequestPriority"]:
        """Список приоритетов от срочного к низкому"""
        return [cls.URGENT, cls.HIGH, cls.NORMAL, cls.LOW]

    @classmethod
    def high_priorities(cls) -> set["RequestPriority"]:
        """Приоритеты, которые считаются высокими"""
        return {cls.HIGH, cls.URGENT}


class ReviewAction(str, Enum):
    """Решение администратора по заявке"""

    APPROVE = "approve"
    REJECT = "reject"
