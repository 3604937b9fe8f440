# firmware/patch.py
"""Подстановка значений в слоты образа.

Запись идёт на месте, поэтому на вход подаётся личная копия образа,
а не общий мастер-образ (см. io.MasterImage.build). После патча
контрольная сумма устаревает, вызывайте rewrite.recompute().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .errors import UnknownSlot, ValueTooLong
from .map import region_by_offset
from .slots import SLOTS, PlaceholderSlot

_logger = logging.getLogger(__name__)


@dataclass
class PatchResult:
    buffer: bytearray
    patched: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.patched)


def _prepare(values: Mapping[str, Optional[str]], slots: Mapping[str, PlaceholderSlot]) -> Dict[str, bytes]:
    """Проверить все значения до первой записи: при ошибке буфер не тронут."""
    prepared = {}
    for name, value in values.items():
        slot = slots.get(name)
        if slot is None:
            raise UnknownSlot(name)
        if not value:
            continue
        if isinstance(value, str):
            raw = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        else:
            raise TypeError(f"Значение слота {name!r} должно быть str или bytes, а не {type(value).__name__}")
        if len(raw) > slot.width:
            raise ValueTooLong(name, len(raw), slot.width)
        prepared[name] = raw
    return prepared


def patch(
    buf: bytearray,
    region_offset: int,
    values: Mapping[str, Optional[str]],
    slots: Mapping[str, PlaceholderSlot] = SLOTS,
) -> PatchResult:
    """
    Заменить шаблоны слотов в регионе на значения.

    Поиск идёт только в границах региона (map.REGIONS; для неизвестного
    смещения до конца буфера). Пустые и отсутствующие значения
    пропускаются. Если шаблон слота не найден, слот остаётся как есть,
    а имя попадает в PatchResult.missing: это предупреждение, а не ошибка. Слишком длинное значение отклоняет
    весь вызов (ValueTooLong) до каких-либо изменений.
    """
    prepared = _prepare(values, slots)
    result = PatchResult(buffer=buf)
    region = region_by_offset(region_offset)
    # size 0: регион до конца буфера
    end = region.start + region.size if region and region.size else len(buf)

    for name, raw in prepared.items():
        slot = slots[name]
        at = buf.find(slot.pattern, region_offset, end)
        if at < 0:
            _logger.warning("Слот %s не найден в регионе 0x%X, пропускаем", name, region_offset)
            result.missing.append(name)
            continue
        buf[at : at + slot.width] = slot.render(raw)
        _logger.debug("Слот %s записан по смещению 0x%X (%d из %d байт)", name, at, len(raw), slot.width)
        result.patched.append(name)

    return result
