"""Тесты для AccountSecurityGuard"""
from datetime import datetime, timedelta, timezone

from grocery.database.models import Account, AuditRecord
from grocery.domain.account_security import AccountSecurityGuard
from grocery.domain.errors import AccountLocked, StateError


T = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_account(**kwargs) -> Account:
    defaults = {"id": 1, "email": "user@shop.com", "name": "User", "audit": AuditRecord.new(T)}
    defaults.update(kwargs)
    return Account(**defaults)


class TestFailedLogin:
    """Учёт неудачных попыток"""

    def test_increment(self):
        account = AccountSecurityGuard.record_failed_login(make_account(), T)
        assert account.failed_login_attempts == 1
        assert account.locked_until is None
        assert account.audit.updated_at == T

    def test_fifth_failure_locks(self):
        """Четыре попытки + ещё одна в момент T блокируют до T + 2ч"""
        account = make_account(failed_login_attempts=4)
        locked = AccountSecurityGuard.record_failed_login(account, T)

        assert locked.locked_until == T + timedelta(hours=2)
        assert locked.failed_login_attempts == 5
        assert AccountSecurityGuard.is_locked(locked, T + timedelta(minutes=1))
        assert not AccountSecurityGuard.is_locked(locked, T + timedelta(hours=2, minutes=1))

    def test_five_failures_in_a_row(self):
        account = make_account()
        for i in range(5):
            account = AccountSecurityGuard.record_failed_login(account, T + timedelta(seconds=i))
        assert AccountSecurityGuard.is_locked(account, T + timedelta(seconds=5))

    def test_failure_while_locked_returns_account_locked(self):
        account = make_account(failed_login_attempts=5, locked_until=T + timedelta(hours=1))
        result = AccountSecurityGuard.record_failed_login(account, T)

        assert isinstance(result, AccountLocked)
        assert isinstance(result, StateError)
        assert result.locked_until == T + timedelta(hours=1)

    def test_expired_lock_restarts_counter(self):
        account = make_account(failed_login_attempts=5, locked_until=T - timedelta(minutes=1))
        result = AccountSecurityGuard.record_failed_login(account, T)

        assert result.failed_login_attempts == 1
        assert result.locked_until is None

    def test_original_not_mutated(self):
        account = make_account()
        AccountSecurityGuard.record_failed_login(account, T)
        assert account.failed_login_attempts == 0


class TestSuccessfulLogin:
    """Успешный вход сбрасывает счётчик"""

    def test_reset(self):
        account = make_account(failed_login_attempts=3)
        result = AccountSecurityGuard.record_successful_login(account, T)

        assert result.failed_login_attempts == 0
        assert result.locked_until is None
        assert result.last_login_at == T

    def test_reset_after_expired_lock(self):
        account = make_account(failed_login_attempts=5, locked_until=T - timedelta(seconds=1))
        result = AccountSecurityGuard.record_successful_login(account, T)

        assert result.failed_login_attempts == 0
        assert result.locked_until is None

    def test_success_while_locked_refused(self):
        account = make_account(failed_login_attempts=5, locked_until=T + timedelta(hours=2))
        result = AccountSecurityGuard.record_successful_login(account, T)
        assert isinstance(result, AccountLocked)


class TestLockQueries:
    """Предикаты блокировки"""

    def test_not_locked_without_locked_until(self):
        assert not AccountSecurityGuard.is_locked(make_account(), T)

    def test_lock_boundary(self):
        """В сам момент locked_until блокировка уже снята"""
        account = make_account(locked_until=T)
        assert not AccountSecurityGuard.is_locked(account, T)

    def test_remaining_lockout(self):
        account = make_account(locked_until=T + timedelta(minutes=30))
        assert AccountSecurityGuard.remaining_lockout(account, T) == timedelta(minutes=30)
        assert AccountSecurityGuard.remaining_lockout(account, T + timedelta(hours=1)) == timedelta(0)

    def test_attempts_remaining(self):
        assert AccountSecurityGuard.attempts_remaining(make_account(failed_login_attempts=2)) == 3
        assert AccountSecurityGuard.attempts_remaining(make_account(failed_login_attempts=7)) == 0
