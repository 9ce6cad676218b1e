"""
Доменное ядро grocery-платформы: права, защита аккаунтов, заявки и заказы
"""

__version__ = "1.0.0"
