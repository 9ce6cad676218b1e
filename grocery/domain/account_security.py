"""
Защита аккаунта: подсчёт неудачных входов и временная блокировка

Состояния:

    unlocked ──(5-я неудачная попытка)──► locked
       ▲                                    │
       └────────(истёк locked_until)────────┘

Успешный вход сбрасывает счётчик и блокировку.
"""

from dataclasses import replace
from datetime import datetime, timedelta

from grocery.core.constants import LOCKOUT_DURATION, MAX_FAILED_LOGIN_ATTEMPTS
from grocery.database.models import Account
from grocery.domain.errors import AccountLocked


class AccountSecurityGuard:
    """Переходы состояния безопасности аккаунта"""

    MAX_FAILED_ATTEMPTS: int = MAX_FAILED_LOGIN_ATTEMPTS
    LOCKOUT_DURATION: timedelta = LOCKOUT_DURATION

    @classmethod
    def is_locked(cls, account: Account, now: datetime) -> bool:
        """
        Проверка блокировки

        Единственный предикат, который должен проверяться до сверки пароля.

        Args:
            account: Аккаунт
            now: Текущий момент

        Returns:
            True если locked_until задан и ещё не наступил
        """
        return account.locked_until is not None and account.locked_until > now

    @classmethod
    def remaining_lockout(cls, account: Account, now: datetime) -> timedelta:
        """Оставшееся время блокировки (ноль, если аккаунт не заблокирован)"""
        if not cls.is_locked(account, now):
            return timedelta(0)
        return account.locked_until - now

    @classmethod
    def attempts_remaining(cls, account: Account) -> int:
        """Сколько неудачных попыток осталось до блокировки"""
        return max(0, cls.MAX_FAILED_ATTEMPTS - account.failed_login_attempts)

    @classmethod
    def locked_result(cls, account: Account) -> AccountLocked:
        return AccountLocked(
            message="Аккаунт временно заблокирован из-за неудачных попыток входа",
            current_state="locked",
            locked_until=account.locked_until,
        )

    @classmethod
    def record_failed_login(cls, account: Account, now: datetime) -> Account | AccountLocked:
        """
        Учёт неудачной попытки входа

        На пятой попытке подряд выставляет locked_until = now + 2 часа.
        Счётчик при блокировке не сбрасывается. Истёкшая блокировка
        считается погашенной: счётчик начинается заново.

        Args:
            account: Аккаунт
            now: Текущий момент

        Returns:
            Новое состояние аккаунта или AccountLocked, если он уже заблокирован
        """
        if cls.is_locked(account, now):
            return cls.locked_result(account)

        attempts = account.failed_login_attempts
        locked_until = account.locked_until
        if locked_until is not None:
            # Блокировка истекла - начинаем новый цикл
            attempts = 0
            locked_until = None

        attempts += 1
        if attempts >= cls.MAX_FAILED_ATTEMPTS:
            locked_until = now + cls.LOCKOUT_DURATION

        return replace(
            account,
            failed_login_attempts=attempts,
            locked_until=locked_until,
            audit=account.audit.touch(now),
        )

    @classmethod
    def record_successful_login(cls, account: Account, now: datetime) -> Account | AccountLocked:
        """
        Учёт успешного входа

        Args:
            account: Аккаунт
            now: Текущий момент

        Returns:
            Аккаунт со сброшенным счётчиком и блокировкой, либо AccountLocked
        """
        if cls.is_locked(account, now):
            return cls.locked_result(account)

        return replace(
            account,
            failed_login_attempts=0,
            locked_until=None,
            last_login_at=now,
            audit=account.audit.touch(now),
        )
