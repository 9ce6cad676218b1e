"""Утилиты: часы, пароли, маскирование PII"""

from grocery.utils.clock import FixedClock, SystemClock, get_now
from grocery.utils.passwords import PasswordHasher
from grocery.utils.pii_masking import mask_dict, mask_email, mask_phone, sanitize_log_message


__all__ = [
    "FixedClock",
    "PasswordHasher",
    "SystemClock",
    "get_now",
    "mask_dict",
    "mask_email",
    "mask_phone",
    "sanitize_log_message",
]
