# firmware/errors.py
"""Исключения движка образов.

Проверка целостности никогда не бросает исключений, она возвращает
bool и отчёт. Исключения поднимаются только при разборе, патче и
пересчёте, где продолжать работу нельзя.
"""


class FirmwareError(Exception):
    """Базовая ошибка работы с образом прошивки."""


class ParseError(FirmwareError):
    """Структуру образа не удалось разобрать."""


class TruncatedImage(ParseError):
    """Таблица сегментов или данные выходят за границы буфера."""

    def __init__(self, message: str, *, needed: int, available: int):
        super().__init__(f"{message} (нужно {needed} байт, доступно {available})")
        self.needed = needed
        self.available = available


class PatchError(FirmwareError):
    """Ошибка подстановки значений в слоты."""


class ValueTooLong(PatchError, ValueError):
    def __init__(self, slot: str, length: int, width: int):
        super().__init__(f"Значение для слота {slot!r} занимает {length} байт, ширина слота {width}")
        self.slot = slot
        self.length = length
        self.width = width


class UnknownSlot(PatchError, KeyError):
    def __init__(self, slot: str):
        super().__init__(slot)
        self.slot = slot

    def __str__(self) -> str:
        return f"Неизвестный слот: {self.slot!r}"


class FirmwareLoadError(FirmwareError):
    """Исходный образ не читается или не проходит проверку, сервис не стартует."""


class IntegrityError(FirmwareError):
    """Образ не прошёл проверку сразу после пересчёта суммы."""
