"""
Репозиторий для работы с аккаунтами
"""

import logging
from dataclasses import replace

import aiosqlite

from grocery.core.constants import UserRole
from grocery.database.models import Account, AuditRecord
from grocery.repositories.base import BaseRepository, from_db_datetime, to_db_datetime
from grocery.repositories.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    IntegrityError,
)
from grocery.utils.pii_masking import mask_email


logger = logging.getLogger(__name__)


class AccountRepository(BaseRepository[Account]):
    """Репозиторий для работы с аккаунтами"""

    entity_type = "Account"

    async def create(self, account: Account) -> Account:
        """
        Создание аккаунта

        Args:
            account: Несохранённый аккаунт

        Returns:
            Аккаунт с присвоенным ID

        Raises:
            IntegrityError: Если email уже занят
        """
        try:
            async with self.transaction():
                cursor = await self._execute(
                    """
                    INSERT INTO accounts (email, name, role, password_hash, failed_login_attempts,
                                          locked_until, last_login_at, version, is_active,
                                          created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account.email,
                        account.name,
                        account.role.value,
                        account.password_hash,
                        account.failed_login_attempts,
                        to_db_datetime(account.locked_until),
                        to_db_datetime(account.last_login_at),
                        account.version,
                        int(account.audit.is_active),
                        to_db_datetime(account.audit.created_at),
                        to_db_datetime(account.audit.updated_at),
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise IntegrityError(f"Аккаунт {mask_email(account.email)} уже существует") from e

        created = replace(account, id=cursor.lastrowid)
        logger.info(f"Создан аккаунт #{created.id} ({created.role.value})")
        return created

    async def load(self, account_id: int) -> Account:
        """
        Получение аккаунта по ID

        Args:
            account_id: ID аккаунта

        Returns:
            Account

        Raises:
            EntityNotFoundError: Если аккаунт не найден
        """
        row = await self._fetch_one("SELECT * FROM accounts WHERE id = ?", (account_id,))
        if not row:
            raise EntityNotFoundError(self.entity_type, account_id)
        return self._row_to_account(row)

    async def get_by_email(self, email: str) -> Account | None:
        """
        Получение аккаунта по email (без учёта регистра)

        Args:
            email: Email

        Returns:
            Account или None
        """
        row = await self._fetch_one(
            "SELECT * FROM accounts WHERE email = ?", (email.strip().lower(),)
        )
        return self._row_to_account(row) if row else None

    async def save(self, account: Account) -> Account:
        """
        Сохранение аккаунта с optimistic locking

        Args:
            account: Аккаунт, полученный через load() и изменённый переходом

        Returns:
            Аккаунт с увеличенной версией

        Raises:
            ConcurrentModificationError: Если версия в БД уже другая
            EntityNotFoundError: Если аккаунт не найден
        """
        if account.id is None:
            raise ValueError("Нельзя сохранить аккаунт без ID, используйте create()")

        async with self.transaction():
            cursor = await self._execute(
                """
                UPDATE accounts
                SET email = ?, name = ?, role = ?, password_hash = ?,
                    failed_login_attempts = ?, locked_until = ?, last_login_at = ?,
                    is_active = ?, updated_at = ?, version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    account.email,
                    account.name,
                    account.role.value,
                    account.password_hash,
                    account.failed_login_attempts,
                    to_db_datetime(account.locked_until),
                    to_db_datetime(account.last_login_at),
                    int(account.audit.is_active),
                    to_db_datetime(account.audit.updated_at),
                    account.id,
                    account.version,
                ),
            )

            if cursor.rowcount == 0:
                exists = await self._fetch_one(
                    "SELECT version FROM accounts WHERE id = ?", (account.id,)
                )
                if not exists:
                    raise EntityNotFoundError(self.entity_type, account.id)
                logger.warning(
                    f"Optimistic locking conflict for Account #{account.id}: "
                    f"expected version {account.version}, got {exists['version']}"
                )
                raise ConcurrentModificationError(self.entity_type, account.id, account.version)

        return replace(account, version=account.version + 1)

    def _row_to_account(self, row: aiosqlite.Row) -> Account:
        """
        Преобразование строки БД в объект Account

        Args:
            row: Строка из БД

        Returns:
            Объект Account
        """
        return Account(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            role=UserRole(row["role"]),
            password_hash=row["password_hash"],
            failed_login_attempts=row["failed_login_attempts"],
            locked_until=from_db_datetime(row["locked_until"]),
            last_login_at=from_db_datetime(row["last_login_at"]),
            version=row["version"],
            audit=AuditRecord(
                created_at=from_db_datetime(row["created_at"]),
                updated_at=from_db_datetime(row["updated_at"]),
                is_active=bool(row["is_active"]),
            ),
        )
