"""Pydantic схемы для валидации заказов (Orders)"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


MAX_NOTES_LENGTH = 1000


class OrderItemSchema(BaseModel):
    """Позиция корзины при оформлении заказа"""

    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(..., min_length=1, max_length=100, description="ID товара")
    product_name: str = Field("", max_length=200, description="Название товара")
    unit_price: float = Field(..., ge=0, description="Цена за единицу на момент заказа")
    quantity: int = Field(..., gt=0, le=1000, description="Количество")
    unit: str = Field("piece", min_length=1, max_length=20, description="Единица измерения")


class OrderCreateSchema(BaseModel):
    """Схема оформления заказа"""

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    user_id: int = Field(..., gt=0, description="ID покупателя")
    items: list[OrderItemSchema] = Field(..., min_length=1, description="Позиции заказа")
    discount_amount: float = Field(0.0, ge=0, description="Скидка")
    shipping_amount: float = Field(0.0, ge=0, description="Стоимость доставки")
    tax_amount: float = Field(0.0, ge=0, description="Налог")
    shipping_address: str | None = Field(None, max_length=500, description="Адрес доставки")
    payment_method: str | None = Field(None, max_length=50, description="Способ оплаты")
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH, description="Комментарий")

    @field_validator("notes", "shipping_address", "payment_method")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v or None

    @model_validator(mode="after")
    def validate_unique_products(self):
        """Один товар - одна позиция"""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Товар указан в заказе несколько раз")
        return self
