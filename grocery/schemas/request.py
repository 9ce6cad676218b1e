"""Pydantic схемы для валидации данных заявок (requestData)"""
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grocery.core.constants import RequestType


EMAIL_REGEX = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Поле не может быть пустым")
    return v


class StoreManagerApprovalSchema(BaseModel):
    """Схема заявки на одобрение управляющего магазином"""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="allow",
    )

    name: str = Field(..., min_length=1, max_length=200, description="Имя управляющего")
    email: str = Field(..., min_length=3, max_length=254, description="Email управляющего")
    phone: str = Field(..., min_length=1, max_length=30, description="Телефон")
    store_name: str = Field(
        ..., alias="storeName", min_length=1, max_length=200, description="Название магазина"
    )
    store_address: str = Field(
        ..., alias="storeAddress", min_length=1, max_length=500, description="Адрес магазина"
    )

    @field_validator("name", "phone", "store_name", "store_address")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Валидация формата email"""
        v = v.strip().lower()
        if not re.match(EMAIL_REGEX, v):
            raise ValueError("Неверный формат email")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Телефон должен содержать от 7 до 15 цифр"""
        digits = re.sub(r"\D", "", v)
        if not 7 <= len(digits) <= 15:
            raise ValueError("Неверный формат телефона")
        return v


class CategoryRequestSchema(BaseModel):
    """Схема заявки на создание или изменение категории"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="allow")

    name: str = Field(..., min_length=1, max_length=100, description="Название категории")
    description: str = Field(..., min_length=1, max_length=1000, description="Описание")

    @field_validator("name", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        return _not_blank(v)


# Схема данных для каждого типа заявки
REQUEST_DATA_SCHEMAS: dict[RequestType, type[BaseModel]] = {
    RequestType.STORE_MANAGER_APPROVAL: StoreManagerApprovalSchema,
    RequestType.CATEGORY_CREATION: CategoryRequestSchema,
    RequestType.CATEGORY_MODIFICATION: CategoryRequestSchema,
}
