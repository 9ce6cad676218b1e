"""
Pytest fixtures и конфигурация для тестов
"""
import sys
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio


# Добавляем корневую директорию в PYTHONPATH
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from grocery.core.constants import OrderStatus, UserRole
from grocery.database import Database
from grocery.database.models import Actor, AuditRecord, Order, OrderItem
from grocery.services import ServiceFactory
from grocery.utils.clock import FixedClock
from grocery.utils.passwords import PasswordHasher


T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[Database, None]:
    """
    Фикстура для тестовой базы данных (in-memory)
    """
    database = Database(":memory:")
    await database.connect()
    await database.init_db()
    yield database
    await database.disconnect()


@pytest.fixture
def clock() -> FixedClock:
    """Управляемые часы, стартующие в T0"""
    return FixedClock(T0)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Быстрый хэшер (мало итераций) для тестов"""
    return PasswordHasher(iterations=1000)


@pytest_asyncio.fixture
async def services(db: Database, clock: FixedClock, hasher: PasswordHasher) -> ServiceFactory:
    """Фабрика сервисов поверх in-memory базы"""
    return ServiceFactory(db.get_connection(), clock=clock, hasher=hasher)


@pytest.fixture
def admin() -> Actor:
    return Actor(id=1, role=UserRole.ADMIN)


@pytest.fixture
def store_manager() -> Actor:
    return Actor(id=2, role=UserRole.STORE_MANAGER)


@pytest.fixture
def customer() -> Actor:
    return Actor(id=3, role=UserRole.CUSTOMER)


@pytest.fixture
def other_customer() -> Actor:
    return Actor(id=4, role=UserRole.CUSTOMER)


@pytest.fixture
def store_manager_data() -> dict:
    """Полные данные заявки менеджера магазина"""
    return {
        "name": "Anna Smith",
        "email": "anna.smith@shop.com",
        "phone": "+1 (555) 123-4567",
        "storeName": "Fresh Corner",
        "storeAddress": "Springfield, 742 Evergreen Terrace",
    }


@pytest.fixture
def make_order(customer: Actor):
    """Фабрика заказов покупателя customer в нужном статусе"""

    def _make(status: OrderStatus = OrderStatus.PENDING, user_id: int | None = None) -> Order:
        return Order(
            id=10,
            user_id=user_id if user_id is not None else customer.id,
            items=(OrderItem(product_id="apple", product_name="Apple", unit_price=1.5, quantity=4),),
            status=status,
            total_amount=6.0,
            final_amount=6.0,
            audit=AuditRecord.new(T0),
        )

    return _make
