"""
Factory для создания сервисов и репозиториев
"""

import logging

import aiosqlite

from grocery.domain.ports import Clock, PasswordVerifier
from grocery.repositories import (
    AccountRepository,
    CategoryRepository,
    OrderRepository,
    RequestRepository,
)
from grocery.repositories.locks import EntityLocks
from grocery.services.auth_service import AuthService
from grocery.services.order_service import OrderService
from grocery.services.request_service import RequestService
from grocery.utils.clock import SystemClock
from grocery.utils.passwords import PasswordHasher


logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory для создания сервисов с инжекцией зависимостей

    Все репозитории фабрики разделяют один реестр блокировок, поэтому
    сервисы сериализуют переходы одной сущности между собой.
    """

    def __init__(
        self,
        db_connection: aiosqlite.Connection,
        clock: Clock | None = None,
        hasher: PasswordVerifier | None = None,
    ):
        """
        Инициализация фабрики

        Args:
            db_connection: Подключение к базе данных
            clock: Источник времени (по умолчанию системный)
            hasher: Хэширование паролей (по умолчанию PBKDF2 из Config)
        """
        self.db_connection = db_connection
        self.clock = clock or SystemClock()
        self.hasher = hasher or PasswordHasher()
        self.locks = EntityLocks()
        self._account_repo = None
        self._request_repo = None
        self._order_repo = None
        self._category_repo = None
        self._auth_service = None
        self._request_service = None
        self._order_service = None

    @property
    def account_repository(self) -> AccountRepository:
        """Ленивая инициализация AccountRepository"""
        if self._account_repo is None:
            self._account_repo = AccountRepository(self.db_connection, self.locks)
        return self._account_repo

    @property
    def request_repository(self) -> RequestRepository:
        """Ленивая инициализация RequestRepository"""
        if self._request_repo is None:
            self._request_repo = RequestRepository(self.db_connection, self.locks)
        return self._request_repo

    @property
    def order_repository(self) -> OrderRepository:
        """Ленивая инициализация OrderRepository"""
        if self._order_repo is None:
            self._order_repo = OrderRepository(self.db_connection, self.locks)
        return self._order_repo

    @property
    def category_repository(self) -> CategoryRepository:
        """Ленивая инициализация CategoryRepository"""
        if self._category_repo is None:
            self._category_repo = CategoryRepository(self.db_connection, self.locks)
        return self._category_repo

    @property
    def auth_service(self) -> AuthService:
        """Получение Auth Service"""
        if self._auth_service is None:
            self._auth_service = AuthService(
                account_repo=self.account_repository, hasher=self.hasher, clock=self.clock
            )
        return self._auth_service

    @property
    def request_service(self) -> RequestService:
        """Получение Request Service"""
        if self._request_service is None:
            self._request_service = RequestService(
                request_repo=self.request_repository,
                account_repo=self.account_repository,
                category_repo=self.category_repository,
                clock=self.clock,
            )
        return self._request_service

    @property
    def order_service(self) -> OrderService:
        """Получение Order Service"""
        if self._order_service is None:
            self._order_service = OrderService(order_repo=self.order_repository, clock=self.clock)
        return self._order_service

    def reset(self):
        """Сброс кэшированных сервисов (для тестирования)"""
        self._account_repo = None
        self._request_repo = None
        self._order_repo = None
        self._category_repo = None
        self._auth_service = None
        self._request_service = None
        self._order_service = None
        self.locks = EntityLocks()
        logger.debug("ServiceFactory: сервисы сброшены")
