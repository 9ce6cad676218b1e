"""Pydantic схемы для валидации аккаунтов"""
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grocery.core.constants import UserRole
from grocery.schemas.request import EMAIL_REGEX


class AccountCreateSchema(BaseModel):
    """Схема регистрации аккаунта"""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=254, description="Email")
    name: str = Field(..., min_length=1, max_length=200, description="Имя")
    password: str = Field(..., min_length=8, max_length=128, description="Пароль")
    role: UserRole = Field(default=UserRole.CUSTOMER, description="Роль пользователя")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Валидация и нормализация email"""
        v = v.lower()
        if not re.match(EMAIL_REGEX, v):
            raise ValueError("Неверный формат email")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Пароль должен содержать буквы и цифры"""
        if not re.search(r"[A-Za-z]", v) or not re.search(r"\d", v):
            raise ValueError("Пароль должен содержать буквы и цифры")
        return v
