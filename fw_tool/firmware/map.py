# firmware/map.py
from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class Region:
    name: str
    start: int
    size: int

# Объединённый образ ESP32-C6: загрузчик и приложение, каждый со своей контрольной суммой.
# Размер приложения заранее неизвестен, поэтому 0 означает «до конца файла».
BOOTLOADER = Region("BOOTLOADER", start=0x00000, size=0x20000)
APPLICATION = Region("APPLICATION", start=0x20000, size=0)

REGIONS = [BOOTLOADER, APPLICATION]

# Раскладка заголовка (смещения относительно начала региона)
HEADER_SIZE = 8
EXT_HEADER_SIZE = 16
SEGMENTS_START = HEADER_SIZE + EXT_HEADER_SIZE   # 24
SEGMENT_COUNT_OFF = 1
DIGEST_FLAG_OFF = 0x17
SEGMENT_DESC_SIZE = 8

CHECKSUM_MAGIC = 0xEF
DIGEST_SIZE = 32
DIGEST_FLAG_SET = 0x01


def region_by_offset(offset: int) -> Region | None:
    for r in REGIONS:
        if r.start == offset:
            return r
    return None
