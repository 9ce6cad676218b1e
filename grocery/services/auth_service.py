"""
Сервис аутентификации: регистрация и вход с защитой от подбора пароля
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from grocery.core.constants import UserRole
from grocery.database.models import Account, AuditRecord
from grocery.domain.account_security import AccountSecurityGuard
from grocery.domain.errors import AccountLocked, InvalidCredentials, ValidationError
from grocery.domain.ports import AccountStore, Clock, PasswordVerifier
from grocery.repositories.exceptions import IntegrityError
from grocery.schemas.account import AccountCreateSchema
from grocery.utils.clock import SystemClock
from grocery.utils.passwords import PasswordHasher
from grocery.utils.pii_masking import mask_email


logger = logging.getLogger(__name__)


class AuthService:
    """
    Сервис регистрации и входа
    """

    def __init__(
        self,
        account_repo: AccountStore,
        hasher: PasswordVerifier | None = None,
        clock: Clock | None = None,
    ):
        """
        Инициализация сервиса

        Args:
            account_repo: Репозиторий аккаунтов
            hasher: Хэширование/проверка паролей
            clock: Источник текущего времени
        """
        self.account_repo = account_repo
        self.hasher = hasher or PasswordHasher()
        self.clock = clock or SystemClock()

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        role: UserRole | str = UserRole.CUSTOMER,
    ) -> Account | ValidationError:
        """
        Регистрация аккаунта

        Args:
            email: Email
            name: Имя
            password: Пароль в открытом виде
            role: Роль

        Returns:
            Созданный аккаунт или ValidationError
        """
        try:
            data = AccountCreateSchema(email=email, name=name, password=password, role=role)
        except PydanticValidationError as e:
            return ValidationError(
                message="Данные регистрации не прошли проверку",
                errors=tuple(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                ),
            )

        if await self.account_repo.get_by_email(data.email):
            return self._duplicate_email(data.email)

        account = Account(
            email=data.email,
            name=data.name,
            role=data.role,
            password_hash=self.hasher.hash(data.password),
            audit=AuditRecord.new(self.clock.now()),
        )
        try:
            created = await self.account_repo.create(account)
        except IntegrityError:
            # email заняли между проверкой и вставкой
            return self._duplicate_email(data.email)
        logger.info(f"Зарегистрирован аккаунт #{created.id}: {mask_email(created.email)}")
        return created

    @staticmethod
    def _duplicate_email(email: str) -> ValidationError:
        logger.warning(f"Повторная регистрация: {mask_email(email)}")
        return ValidationError(
            message="Аккаунт с таким email уже существует",
            errors=("email: already registered",),
        )

    async def login(
        self, email: str, password: str
    ) -> Account | AccountLocked | InvalidCredentials:
        """
        Вход по email и паролю

        Блокировка проверяется до сверки пароля: заблокированный аккаунт
        получает AccountLocked даже при верном пароле. Неизвестный email
        ничего не записывает.

        Args:
            email: Email
            password: Пароль

        Returns:
            Аккаунт после успешного входа, AccountLocked или InvalidCredentials
        """
        found = await self.account_repo.get_by_email(email)
        if found is None or not found.audit.is_active:
            logger.warning(f"Вход с неизвестным email: {mask_email(email)}")
            return InvalidCredentials(message="Неверный email или пароль")

        async with self.account_repo.locked(found.id):
            # Перечитываем под блокировкой: счётчик мог измениться
            account = await self.account_repo.load(found.id)
            now = self.clock.now()

            if AccountSecurityGuard.is_locked(account, now):
                logger.warning(
                    f"Вход в заблокированный аккаунт #{account.id} "
                    f"(до {account.locked_until.isoformat()})"
                )
                return AccountSecurityGuard.locked_result(account)

            if not self.hasher.verify(password, account.password_hash):
                result = AccountSecurityGuard.record_failed_login(account, now)
                if isinstance(result, AccountLocked):
                    return result

                saved = await self.account_repo.save(result)
                if AccountSecurityGuard.is_locked(saved, now):
                    logger.warning(
                        f"Аккаунт #{saved.id} заблокирован до {saved.locked_until.isoformat()} "
                        f"после {saved.failed_login_attempts} неудачных попыток"
                    )
                else:
                    logger.info(
                        f"Неудачный вход в аккаунт #{saved.id} "
                        f"(попытка {saved.failed_login_attempts})"
                    )
                return InvalidCredentials(
                    message="Неверный email или пароль",
                    attempts_remaining=AccountSecurityGuard.attempts_remaining(saved),
                )

            result = AccountSecurityGuard.record_successful_login(account, now)
            if isinstance(result, AccountLocked):
                return result

            saved = await self.account_repo.save(result)
            logger.info(f"Успешный вход в аккаунт #{saved.id}")
            return saved

    async def get_account(self, account_id: int) -> Account:
        """
        Получение аккаунта по ID

        Raises:
            EntityNotFoundError: Если аккаунт не найден
        """
        return await self.account_repo.load(account_id)
