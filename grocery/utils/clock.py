"""
Источники текущего времени

Время всегда внедряется через Clock, чтобы истечение блокировок
можно было детерминированно проверять в тестах.
"""

from datetime import datetime, timedelta, timezone


def get_now() -> datetime:
    """
    Получить текущее время в UTC

    Returns:
        datetime объект с timezone UTC
    """
    return datetime.now(timezone.utc)


class SystemClock:
    """Часы на основе системного времени"""

    def now(self) -> datetime:
        return get_now()


class FixedClock:
    """
    Управляемые часы для тестов и детерминированных сценариев

    Время меняется только явными вызовами set()/advance().
    """

    def __init__(self, start: datetime | None = None):
        """
        Args:
            start: Начальный момент времени (по умолчанию текущее время UTC)
        """
        self._now = start or get_now()

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        """Установить текущий момент"""
        self._now = moment

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """
        Сдвинуть время вперёд

        Args:
            delta: Интервал сдвига
            **kwargs: Аргументы timedelta (hours=2, minutes=1, ...)

        Returns:
            Новый текущий момент
        """
        self._now = self._now + (delta or timedelta(**kwargs))
        return self._now
