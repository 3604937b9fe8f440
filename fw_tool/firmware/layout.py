# firmware/layout.py
"""Разбор раскладки загрузочного образа.

Регион начинается с 8-байтового заголовка и 16-байтового расширенного
заголовка. Байт 1: число сегментов. Начиная со смещения 24 сегменты
идут подряд: 4 байта адреса загрузки, 4 байта длины (little-endian),
затем сами данные.

Однобайтовая контрольная сумма лежит на последнем байте 16-байтового
блока, следующего за данными. Если данные заканчиваются ровно на
границе 16, под сумму уходит целый дополнительный блок.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

from .digest import digest_flag_set
from .errors import TruncatedImage
from .map import (
    SEGMENT_COUNT_OFF,
    SEGMENT_DESC_SIZE,
    SEGMENTS_START,
)

_SEGMENT_DESC = struct.Struct("<II")


@dataclass(frozen=True)
class SegmentDescriptor:
    load_addr: int
    length: int
    data_offset: int  # смещение данных относительно региона

    @property
    def data_end(self) -> int:
        return self.data_offset + self.length


@dataclass(frozen=True)
class ImageLayout:
    region_offset: int
    segments: Tuple[SegmentDescriptor, ...]
    data_end: int
    checksum_offset: int
    digest_appended: bool

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def absolute(self, rel: int) -> int:
        """Перевести смещение внутри региона в смещение в буфере."""
        return self.region_offset + rel


def ceil16(x: int) -> int:
    # кратное 16 всё равно уходит на следующую границу
    return (x // 16 + 1) * 16


def checksum_offset_for(data_end: int) -> int:
    return ceil16(data_end) - 1


def parse_layout(buf: bytes | bytearray | memoryview, region_offset: int) -> ImageLayout:
    """Разобрать заголовок и таблицу сегментов региона.

    Функция ничего не меняет и не сохраняет ссылок на буфер.
    """
    size = len(buf)
    if region_offset < 0 or region_offset + SEGMENTS_START > size:
        raise TruncatedImage(
            f"Регион 0x{region_offset:X} меньше заголовка",
            needed=region_offset + SEGMENTS_START,
            available=size,
        )

    count = buf[region_offset + SEGMENT_COUNT_OFF]
    segments = []
    pos = SEGMENTS_START
    for i in range(count):
        desc_at = region_offset + pos
        if desc_at + SEGMENT_DESC_SIZE > size:
            raise TruncatedImage(
                f"Дескриптор сегмента {i} выходит за конец образа",
                needed=desc_at + SEGMENT_DESC_SIZE,
                available=size,
            )
        load_addr, length = _SEGMENT_DESC.unpack_from(buf, desc_at)
        pos += SEGMENT_DESC_SIZE
        if region_offset + pos + length > size:
            raise TruncatedImage(
                f"Данные сегмента {i} (0x{load_addr:08X}, {length} байт) выходят за конец образа",
                needed=region_offset + pos + length,
                available=size,
            )
        segments.append(SegmentDescriptor(load_addr=load_addr, length=length, data_offset=pos))
        pos += length

    return ImageLayout(
        region_offset=region_offset,
        segments=tuple(segments),
        data_end=pos,
        checksum_offset=checksum_offset_for(pos),
        digest_appended=digest_flag_set(buf, region_offset),
    )
