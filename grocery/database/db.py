"""
Работа с базой данных
"""

import logging
from typing import TYPE_CHECKING

import aiosqlite

from grocery.core.config import Config


if TYPE_CHECKING:
    from grocery.services.service_factory import ServiceFactory


logger = logging.getLogger(__name__)


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT UNIQUE NOT NULL,
        name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'customer',
        password_hash TEXT NOT NULL,
        failed_login_attempts INTEGER NOT NULL DEFAULT 0,
        locked_until TIMESTAMP,
        last_login_at TIMESTAMP,
        version INTEGER NOT NULL DEFAULT 1,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        requested_by INTEGER NOT NULL,
        reviewed_by INTEGER,
        reviewed_at TIMESTAMP,
        rejection_reason TEXT,
        request_data TEXT NOT NULL,
        priority TEXT NOT NULL DEFAULT 'normal',
        notes TEXT NOT NULL DEFAULT '',
        version INTEGER NOT NULL DEFAULT 1,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP,
        updated_at TIMESTAMP,
        FOREIGN KEY (requested_by) REFERENCES accounts(id),
        FOREIGN KEY (reviewed_by) REFERENCES accounts(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        slug TEXT NOT NULL DEFAULT '',
        image_url TEXT NOT NULL DEFAULT '',
        parent_id INTEGER,
        sort_order INTEGER NOT NULL DEFAULT 0,
        is_visible INTEGER NOT NULL DEFAULT 1,
        created_by INTEGER,
        version INTEGER NOT NULL DEFAULT 1,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP,
        updated_at TIMESTAMP,
        FOREIGN KEY (parent_id) REFERENCES categories(id),
        FOREIGN KEY (created_by) REFERENCES accounts(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_number TEXT UNIQUE NOT NULL,
        user_id INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        total_amount REAL NOT NULL DEFAULT 0,
        discount_amount REAL NOT NULL DEFAULT 0,
        shipping_amount REAL NOT NULL DEFAULT 0,
        tax_amount REAL NOT NULL DEFAULT 0,
        final_amount REAL NOT NULL DEFAULT 0,
        shipping_address TEXT,
        payment_method TEXT,
        tracking_number TEXT,
        notes TEXT NOT NULL DEFAULT '',
        cancelled_by INTEGER,
        cancelled_at TIMESTAMP,
        cancellation_reason TEXT,
        version INTEGER NOT NULL DEFAULT 1,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP,
        updated_at TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES accounts(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        product_id TEXT NOT NULL,
        product_name TEXT NOT NULL DEFAULT '',
        unit_price REAL NOT NULL,
        quantity INTEGER NOT NULL,
        unit TEXT NOT NULL DEFAULT 'piece',
        FOREIGN KEY (order_id) REFERENCES orders(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_status_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id INTEGER NOT NULL,
        old_status TEXT,
        new_status TEXT NOT NULL,
        changed_by INTEGER,
        changed_at TIMESTAMP NOT NULL,
        notes TEXT,
        FOREIGN KEY (order_id) REFERENCES orders(id)
    )
    """,
]

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_accounts_email ON accounts(email)",
    "CREATE INDEX IF NOT EXISTS idx_requests_status ON requests(status)",
    "CREATE INDEX IF NOT EXISTS idx_requests_requested_by ON requests(requested_by)",
    "CREATE INDEX IF NOT EXISTS idx_categories_slug ON categories(slug)",
    "CREATE INDEX IF NOT EXISTS idx_orders_user_id ON orders(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status)",
    "CREATE INDEX IF NOT EXISTS idx_order_items_order_id ON order_items(order_id)",
    "CREATE INDEX IF NOT EXISTS idx_history_order_id ON order_status_history(order_id)",
]


class Database:
    """Класс для работы с базой данных"""

    def __init__(self, db_path: str | None = None):
        """
        Инициализация

        Args:
            db_path: Путь к файлу базы данных (":memory:" для тестов)
        """
        self.db_path = db_path or Config.DATABASE_PATH
        self.connection: aiosqlite.Connection | None = None
        self._service_factory: "ServiceFactory | None" = None

    def get_connection(self) -> aiosqlite.Connection:
        """
        Доступ к активному соединению

        Raises:
            RuntimeError: Если база не подключена
        """
        if self.connection is None:
            raise RuntimeError("База данных не подключена")
        return self.connection

    async def connect(self):
        """Подключение к базе данных"""
        # isolation_level=None: транзакциями управляем явно через BEGIN IMMEDIATE
        connection = await aiosqlite.connect(self.db_path, isolation_level=None)
        connection.row_factory = aiosqlite.Row
        if self.db_path != ":memory:":
            await connection.execute("PRAGMA journal_mode=WAL")
        await connection.execute("PRAGMA foreign_keys=ON")
        self.connection = connection
        logger.info("Подключено к базе данных: %s", self.db_path)

    async def disconnect(self):
        """Отключение от базы данных"""
        connection = self.connection
        if connection:
            await connection.close()
            self.connection = None
            self._service_factory = None
            logger.info("Отключено от базы данных")

    async def init_db(self):
        """Создание таблиц и индексов, если их ещё нет"""
        if not self.connection:
            await self.connect()

        connection = self.get_connection()
        for statement in SCHEMA + INDEXES:
            await connection.execute(statement)
        await connection.commit()
        logger.info("[OK] База данных инициализирована")

    @property
    def services(self) -> "ServiceFactory":
        """
        Получение Service Factory для доступа к сервисам

        Returns:
            ServiceFactory: Фабрика сервисов
        """
        if self._service_factory is None:
            from grocery.services.service_factory import ServiceFactory

            self._service_factory = ServiceFactory(self.get_connection())
        return self._service_factory
