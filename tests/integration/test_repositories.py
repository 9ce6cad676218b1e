"""
Тесты репозиториев поверх in-memory SQLite
"""
import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from grocery.core.constants import (
    OrderStatus,
    RequestPriority,
    RequestStatus,
    RequestType,
    UserRole,
)
from grocery.database import Database
from grocery.database.models import Account, AuditRecord, Category, OrderItem
from grocery.domain.order_lifecycle import OrderLifecycle
from grocery.domain.ports import RequestFilter
from grocery.domain.request_workflow import RequestWorkflow
from grocery.repositories import (
    AccountRepository,
    CategoryRepository,
    ConcurrentModificationError,
    EntityLocks,
    EntityNotFoundError,
    IntegrityError,
    OrderRepository,
    RequestRepository,
)


T = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def locks() -> EntityLocks:
    return EntityLocks()


@pytest.fixture
def account_repo(db: Database, locks) -> AccountRepository:
    return AccountRepository(db.get_connection(), locks)


@pytest.fixture
def request_repo(db: Database, locks) -> RequestRepository:
    return RequestRepository(db.get_connection(), locks)


@pytest.fixture
def order_repo(db: Database, locks) -> OrderRepository:
    return OrderRepository(db.get_connection(), locks)


@pytest.fixture
def category_repo(db: Database, locks) -> CategoryRepository:
    return CategoryRepository(db.get_connection(), locks)


async def create_account(repo: AccountRepository, email: str, role=UserRole.CUSTOMER) -> Account:
    return await repo.create(
        Account(
            email=email,
            name="Test",
            role=role,
            password_hash="pbkdf2_sha256$1$AA==$AA==",
            audit=AuditRecord.new(T),
        )
    )


class TestDatabase:
    """Тесты для класса Database"""

    @pytest.mark.asyncio
    async def test_database_connection(self, db: Database):
        """Тест подключения к базе данных"""
        assert db.connection is not None
        assert db.get_connection().row_factory is not None

    @pytest.mark.asyncio
    async def test_tables_created(self, db: Database):
        cursor = await db.get_connection().execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        )
        tables = {row["name"] for row in await cursor.fetchall()}
        assert {"accounts", "requests", "orders", "order_items", "order_status_history"} <= tables

    @pytest.mark.asyncio
    async def test_disconnected(self):
        database = Database(":memory:")
        with pytest.raises(RuntimeError):
            database.get_connection()


class TestAccountRepository:
    """Тесты AccountRepository"""

    @pytest.mark.asyncio
    async def test_create_and_load(self, account_repo):
        created = await create_account(account_repo, "bob@shop.com")
        loaded = await account_repo.load(created.id)

        assert loaded.email == "bob@shop.com"
        assert loaded.role == UserRole.CUSTOMER
        assert loaded.version == 1
        assert loaded.audit.created_at == T

    @pytest.mark.asyncio
    async def test_get_by_email_case_insensitive(self, account_repo):
        await create_account(account_repo, "bob@shop.com")
        assert (await account_repo.get_by_email(" BOB@shop.com ")) is not None
        assert (await account_repo.get_by_email("alice@shop.com")) is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, account_repo):
        await create_account(account_repo, "bob@shop.com")
        with pytest.raises(IntegrityError):
            await create_account(account_repo, "bob@shop.com")

    @pytest.mark.asyncio
    async def test_load_missing(self, account_repo):
        with pytest.raises(EntityNotFoundError):
            await account_repo.load(999)

    @pytest.mark.asyncio
    async def test_save_roundtrip_lock_fields(self, account_repo):
        account = await create_account(account_repo, "bob@shop.com")
        locked = replace(account, failed_login_attempts=5, locked_until=T + timedelta(hours=2))

        saved = await account_repo.save(locked)
        loaded = await account_repo.load(account.id)

        assert saved.version == 2
        assert loaded.version == 2
        assert loaded.failed_login_attempts == 5
        assert loaded.locked_until == T + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, account_repo):
        """Сохранение устаревшей копии - ConcurrentModificationError"""
        account = await create_account(account_repo, "bob@shop.com")
        await account_repo.save(replace(account, failed_login_attempts=1))

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await account_repo.save(replace(account, failed_login_attempts=1))

        assert exc_info.value.expected_version == 1
        assert (await account_repo.load(account.id)).version == 2

    @pytest.mark.asyncio
    async def test_save_missing(self, account_repo):
        with pytest.raises(EntityNotFoundError):
            await account_repo.save(Account(id=42, email="x@y.co"))


class TestRequestRepository:
    """Тесты RequestRepository"""

    async def _submit(self, repo, requested_by, priority="normal", at=T):
        request = RequestWorkflow.submit(
            RequestType.CATEGORY_CREATION,
            requested_by,
            {"name": "Bakery", "description": "Bread"},
            at,
            priority=priority,
        )
        return await repo.create(request)

    @pytest.mark.asyncio
    async def test_create_and_load(self, account_repo, request_repo):
        requester = await create_account(account_repo, "bob@shop.com")
        created = await self._submit(request_repo, requester.id)
        loaded = await request_repo.load(created.id)

        assert loaded.type == RequestType.CATEGORY_CREATION
        assert loaded.status == RequestStatus.PENDING
        assert loaded.request_data == {"name": "Bakery", "description": "Bread"}

    @pytest.mark.asyncio
    async def test_list_pending_ordering(self, account_repo, request_repo):
        """Срочные впереди, внутри приоритета - старые первыми"""
        requester = await create_account(account_repo, "bob@shop.com")
        low = await self._submit(request_repo, requester.id, "low", T)
        normal_old = await self._submit(request_repo, requester.id, "normal", T)
        normal_new = await self._submit(
            request_repo, requester.id, "normal", T + timedelta(minutes=5)
        )
        urgent = await self._submit(
            request_repo, requester.id, "urgent", T + timedelta(minutes=10)
        )

        pending = await request_repo.list_pending()
        assert [r.id for r in pending] == [urgent.id, normal_old.id, normal_new.id, low.id]

    @pytest.mark.asyncio
    async def test_list_pending_filter(self, account_repo, request_repo):
        requester = await create_account(account_repo, "bob@shop.com")
        other = await create_account(account_repo, "eve@shop.com")
        await self._submit(request_repo, requester.id, "high")
        await self._submit(request_repo, other.id, "high")
        await self._submit(request_repo, other.id, "low")

        by_other = await request_repo.list_pending(RequestFilter(requested_by=other.id))
        high = await request_repo.list_pending(RequestFilter(priority=RequestPriority.HIGH))
        limited = await request_repo.list_pending(RequestFilter(limit=1))

        assert len(by_other) == 2
        assert len(high) == 2
        assert len(limited) == 1

    @pytest.mark.asyncio
    async def test_reviewed_not_pending(self, account_repo, request_repo):
        requester = await create_account(account_repo, "bob@shop.com")
        admin = await create_account(account_repo, "root@shop.com", UserRole.ADMIN)
        created = await self._submit(request_repo, requester.id)

        approved = RequestWorkflow.review(created, admin.as_actor(), "approve", T)
        saved = await request_repo.save(approved)

        assert saved.version == 2
        assert await request_repo.list_pending() == []
        loaded = await request_repo.load(created.id)
        assert loaded.reviewed_by == admin.id
        assert loaded.reviewed_at == T


class TestOrderRepository:
    """Тесты OrderRepository"""

    async def _place(self, repo, user_id):
        items = [
            OrderItem(product_id="milk", product_name="Milk", unit_price=0.99, quantity=2),
            OrderItem(product_id="bread", product_name="Bread", unit_price=2.5, quantity=1),
        ]
        return await repo.create(OrderLifecycle.place(user_id, items, T), created_by=user_id)

    @pytest.mark.asyncio
    async def test_create_and_load_items(self, account_repo, order_repo):
        owner = await create_account(account_repo, "bob@shop.com")
        created = await self._place(order_repo, owner.id)
        loaded = await order_repo.load(created.id)

        assert loaded.status == OrderStatus.PENDING
        assert [item.product_id for item in loaded.items] == ["milk", "bread"]
        assert loaded.total_amount == 4.48
        assert loaded.order_number == created.order_number

    @pytest.mark.asyncio
    async def test_status_history(self, account_repo, order_repo):
        owner = await create_account(account_repo, "bob@shop.com")
        admin = await create_account(account_repo, "root@shop.com", UserRole.ADMIN)
        order = await self._place(order_repo, owner.id)

        confirmed = OrderLifecycle.advance(order, admin.as_actor(), "confirmed", T)
        order = await order_repo.save(confirmed, changed_by=admin.id)
        cancelled = OrderLifecycle.cancel(order, owner.as_actor(), "changed mind", T)
        await order_repo.save(cancelled, changed_by=owner.id)

        history = await order_repo.get_status_history(order.id)
        assert [(h["old_status"], h["new_status"]) for h in history] == [
            (None, "pending"),
            ("pending", "confirmed"),
            ("confirmed", "cancelled"),
        ]
        assert history[1]["changed_by"] == admin.id
        assert history[2]["notes"] == "changed mind"

    @pytest.mark.asyncio
    async def test_save_without_status_change_adds_no_history(self, account_repo, order_repo):
        owner = await create_account(account_repo, "bob@shop.com")
        order = await self._place(order_repo, owner.id)

        await order_repo.save(replace(order, notes="ring twice"), changed_by=owner.id)

        assert len(await order_repo.get_status_history(order.id)) == 1
        assert (await order_repo.load(order.id)).notes == "ring twice"

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, account_repo, order_repo):
        owner = await create_account(account_repo, "bob@shop.com")
        admin = await create_account(account_repo, "root@shop.com", UserRole.ADMIN)
        order = await self._place(order_repo, owner.id)

        await order_repo.save(OrderLifecycle.advance(order, admin.as_actor(), "confirmed", T))
        with pytest.raises(ConcurrentModificationError):
            await order_repo.save(OrderLifecycle.cancel(order, owner.as_actor(), None, T))

        loaded = await order_repo.load(order.id)
        assert loaded.status == OrderStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_get_by_user(self, account_repo, order_repo):
        owner = await create_account(account_repo, "bob@shop.com")
        other = await create_account(account_repo, "eve@shop.com")
        await self._place(order_repo, owner.id)
        await self._place(order_repo, owner.id)
        await self._place(order_repo, other.id)

        assert len(await order_repo.get_by_user(owner.id)) == 2
        assert len(await order_repo.get_by_user(owner.id, status="confirmed")) == 0

    @pytest.mark.asyncio
    async def test_load_missing(self, order_repo):
        with pytest.raises(EntityNotFoundError):
            await order_repo.load(404)

    @pytest.mark.asyncio
    async def test_missing_owner_rejected(self, order_repo):
        with pytest.raises(IntegrityError):
            await self._place(order_repo, 777)

        assert await order_repo.get_by_user(777) == []


class TestCategoryRepository:
    """Тесты CategoryRepository"""

    @pytest.mark.asyncio
    async def test_create_and_load(self, category_repo):
        created = await category_repo.create(
            Category(name="Bakery", description="Bread", slug="bakery", audit=AuditRecord.new(T))
        )
        loaded = await category_repo.load(created.id)

        assert loaded.name == "Bakery"
        assert loaded.slug == "bakery"
        assert loaded.is_visible
        assert loaded.is_root()
        assert loaded.audit.created_at == T

    @pytest.mark.asyncio
    async def test_subcategory_and_visibility(self, category_repo):
        root = await category_repo.create(Category(name="Drinks", slug="drinks", sort_order=2))
        await category_repo.create(Category(name="Juice", slug="juice", parent_id=root.id))
        await category_repo.create(Category(name="Hidden", slug="hidden", is_visible=False))

        visible = await category_repo.list_visible()

        assert [c.name for c in visible] == ["Juice", "Drinks"]
        assert visible[0].parent_id == root.id

    @pytest.mark.asyncio
    async def test_missing_parent_rejected(self, category_repo):
        with pytest.raises(IntegrityError):
            await category_repo.create(Category(name="Orphan", slug="orphan", parent_id=404))

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, category_repo):
        category = await category_repo.create(Category(name="Tea", slug="tea"))
        await category_repo.save(replace(category, description="Green"))

        with pytest.raises(ConcurrentModificationError):
            await category_repo.save(replace(category, description="Black"))

        assert (await category_repo.load(category.id)).description == "Green"


class TestTransactions:
    """Общая транзакция и блокировки соединения"""

    @pytest.mark.asyncio
    async def test_empty_registry_is_shared(self, db: Database):
        locks = EntityLocks()
        first = AccountRepository(db.get_connection(), locks)
        second = OrderRepository(db.get_connection(), locks)

        assert first.locks is locks
        assert second.locks is locks

    @pytest.mark.asyncio
    async def test_missing_requester_rejected(self, request_repo):
        request = RequestWorkflow.submit(
            RequestType.CATEGORY_CREATION, 999, {"name": "Bakery", "description": "Bread"}, T
        )
        with pytest.raises(IntegrityError):
            await request_repo.create(request)

        assert await request_repo.list_pending() == []

    @pytest.mark.asyncio
    async def test_nested_writes_rolled_back_together(self, account_repo, category_repo):
        """Вложенные записи присоединяются к внешней транзакции"""
        with pytest.raises(RuntimeError):
            async with account_repo.transaction():
                owner = await create_account(account_repo, "bob@shop.com")
                await category_repo.create(Category(name="Tea", slug="tea", created_by=owner.id))
                raise RuntimeError("abort")

        assert await account_repo.get_by_email("bob@shop.com") is None
        assert await category_repo.list_visible() == []

    @pytest.mark.asyncio
    async def test_nested_writes_committed_together(self, account_repo, category_repo):
        async with account_repo.transaction():
            owner = await create_account(account_repo, "bob@shop.com")
            await category_repo.create(Category(name="Tea", slug="tea", created_by=owner.id))

        assert await account_repo.get_by_email("bob@shop.com") is not None
        assert len(await category_repo.list_visible()) == 1

    @pytest.mark.asyncio
    async def test_parallel_writes_through_different_repositories(
        self, account_repo, request_repo, locks
    ):
        requester = await create_account(account_repo, "bob@shop.com")

        async def bump(n):
            async with account_repo.locked(requester.id):
                account = await account_repo.load(requester.id)
                await account_repo.save(replace(account, failed_login_attempts=n))

        async def submit():
            request = RequestWorkflow.submit(
                RequestType.CATEGORY_CREATION,
                requester.id,
                {"name": "Bakery", "description": "Bread"},
                T,
            )
            return await request_repo.create(request)

        await asyncio.gather(bump(1), submit(), bump(2), submit())

        assert (await account_repo.load(requester.id)).version == 3
        assert len(await request_repo.list_pending()) == 2
        assert locks.active_keys() == 0


class TestEntityLocks:
    """Тесты реестра блокировок"""

    @pytest.mark.asyncio
    async def test_lock_evicted_after_release(self):
        locks = EntityLocks()
        async with locks.hold("Order", 1):
            assert locks.active_keys() == 1

        assert locks.active_keys() == 0

    @pytest.mark.asyncio
    async def test_lock_kept_while_waiter_pending(self):
        locks = EntityLocks()
        order = []

        async def worker(name):
            async with locks.hold("Order", 1):
                assert locks.active_keys() == 1
                order.append(name)
                await asyncio.sleep(0)
                assert order[-1] == name

        await asyncio.gather(worker("a"), worker("b"), worker("c"))

        assert order == ["a", "b", "c"]
        assert locks.active_keys() == 0

    @pytest.mark.asyncio
    async def test_distinct_keys(self):
        locks = EntityLocks()
        async with locks.hold("Order", 1), locks.hold("Account", 1):
            assert locks.active_keys() == 2

        assert locks.active_keys() == 0
