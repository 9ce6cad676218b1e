"""
Утилиты для маскирования персональных данных (PII) в логах

Маскируются:
- Телефоны
- Email
- Имена
- Адреса (магазинов и доставки)
"""

import re
from typing import Any


def mask_phone(phone: str | None) -> str:
    """
    Маскирует телефонный номер

    Примеры:
        +79991234567 → +7****4567
        +1 (555) 123-4567 → +1****4567

    Args:
        phone: Телефонный номер

    Returns:
        Маскированный номер
    """
    if not phone:
        return "[no phone]"

    clean_phone = re.sub(r"[^\d+]", "", phone)

    if len(clean_phone) < 5:
        return "****"

    return f"{clean_phone[:2]}****{clean_phone[-4:]}"


def mask_email(email: str | None) -> str:
    """
    Маскирует email, оставляя первую букву и домен

    Примеры:
        anna.smith@shop.com → a***@shop.com
        x@y.io → *@y.io

    Args:
        email: Адрес электронной почты

    Returns:
        Маскированный email
    """
    if not email:
        return "[no email]"

    local, sep, domain = email.partition("@")
    if not sep:
        return "***"

    if len(local) <= 1:
        return f"*@{domain}"

    return f"{local[0]}***@{domain}"


def mask_name(name: str | None) -> str:
    """
    Маскирует имя

    Примеры:
        Иванов Иван → И***в И***н
        Al → A*

    Args:
        name: Имя

    Returns:
        Маскированное имя
    """
    if not name:
        return "[no name]"

    masked_parts = []
    for part in name.strip().split():
        if len(part) <= 1:
            masked_parts.append("*")
        elif len(part) == 2:
            masked_parts.append(f"{part[0]}*")
        else:
            masked_parts.append(f"{part[0]}***{part[-1]}")

    return " ".join(masked_parts)


def mask_address(address: str | None) -> str:
    """
    Маскирует адрес (город + начало улицы)

    Args:
        address: Адрес

    Returns:
        Маскированный адрес
    """
    if not address:
        return "[no address]"

    parts = address.split(",")
    city = parts[0].strip()

    if len(parts) > 1:
        street_start = parts[1].strip()[:8]
        return f"{city}, {street_start}..."

    return f"{city}..."


def sanitize_log_message(message: str) -> str:
    """
    Очищает строку лога от телефонов и email

    Args:
        message: Исходное сообщение

    Returns:
        Очищенное сообщение
    """
    message = re.sub(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", "[EMAIL]", message)
    message = re.sub(r"\+?\d[\d\s\-\(\)]{8,}\d", "[PHONE]", message)
    return message


PII_FIELDS = {
    "name",
    "email",
    "phone",
    "storeAddress",
    "shipping_address",
}


def mask_dict(data: dict[str, Any]) -> dict[str, Any]:
    """
    Маскирует PII поля в словаре (например, request_data заявки)

    Args:
        data: Словарь с данными

    Returns:
        Новый словарь с маскированными PII
    """
    masked = data.copy()

    for key, value in masked.items():
        if key in PII_FIELDS and value:
            lowered = key.lower()
            if "phone" in lowered:
                masked[key] = mask_phone(str(value))
            elif "email" in lowered:
                masked[key] = mask_email(str(value))
            elif "address" in lowered:
                masked[key] = mask_address(str(value))
            elif "name" in lowered:
                masked[key] = mask_name(str(value))

    return masked
