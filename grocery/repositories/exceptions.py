"""
Исключения для работы с репозиториями
"""


class RepositoryError(Exception):
    """Базовое исключение для репозиториев"""


class ConcurrentModificationError(RepositoryError):
    """
    Конфликт версий (optimistic locking)

    Запись была изменена другим писателем между чтением и сохранением.
    """

    def __init__(self, entity_type: str, entity_id: int, expected_version: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity_type} #{entity_id} was modified concurrently "
            f"(expected version {expected_version}). Reload and retry."
        )


class EntityNotFoundError(RepositoryError):
    """Запись не найдена"""

    def __init__(self, entity_type: str, entity_id: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} #{entity_id} not found")


class IntegrityError(RepositoryError):
    """Нарушение целостности данных (например, повторный email)"""
