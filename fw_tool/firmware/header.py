# firmware/header.py
"""Справочный разбор заголовка образа ESP32 для вывода в CLI.

Здесь же CRC32 региона: он выводится только для сравнения и никак не
влияет на результат проверки (действительна только XOR-сумма).
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from typing import List

from .errors import TruncatedImage

ESP_IMAGE_MAGIC = 0xE9
CHIP_ID_ESP32C6 = 0x000D
BYTES_PER_ROW = 16

_HEADER = struct.Struct("<BBBBIB3sHBHH4sB")


@dataclass(frozen=True)
class ImageHeader:
    magic: int
    segment_count: int
    spi_mode: int
    spi_speed_size: int
    entry_addr: int
    wp_pin: int
    spi_pin_drv: bytes
    chip_id: int
    min_chip_rev: int
    min_chip_rev_full: int
    max_chip_rev_full: int
    hash_append: int

    @property
    def magic_valid(self) -> bool:
        return self.magic == ESP_IMAGE_MAGIC

    @property
    def chip_id_valid(self) -> bool:
        return self.chip_id == CHIP_ID_ESP32C6


def inspect_header(buf: bytes | bytearray | memoryview, region_offset: int) -> ImageHeader:
    if region_offset < 0 or region_offset + _HEADER.size > len(buf):
        raise TruncatedImage("Заголовок образа обрезан", needed=region_offset + _HEADER.size, available=len(buf))
    fields = _HEADER.unpack_from(buf, region_offset)
    (magic, seg_count, spi_mode, spi_speed_size, entry, wp_pin, pin_drv,
     chip_id, min_rev, min_rev_full, max_rev_full, _reserved, hash_append) = fields
    return ImageHeader(
        magic=magic,
        segment_count=seg_count,
        spi_mode=spi_mode,
        spi_speed_size=spi_speed_size,
        entry_addr=entry,
        wp_pin=wp_pin,
        spi_pin_drv=bytes(pin_drv),
        chip_id=chip_id,
        min_chip_rev=min_rev,
        min_chip_rev_full=min_rev_full,
        max_chip_rev_full=max_rev_full,
        hash_append=hash_append,
    )


def crc32_informational(buf: bytes | bytearray | memoryview, region_offset: int, checksum_offset: int) -> int:
    end = min(len(buf), region_offset + checksum_offset)
    return zlib.crc32(bytes(buf[region_offset:end])) & 0xFFFFFFFF


def hexdump(buf: bytes | bytearray | memoryview, start: int, length: int) -> List[str]:
    start = max(0, start)
    data = bytes(buf[start : start + length])
    lines = []
    for i in range(0, len(data), BYTES_PER_ROW):
        row = data[i : i + BYTES_PER_ROW]
        hexes = " ".join(f"{b:02X}" for b in row).ljust(BYTES_PER_ROW * 3 - 1)
        text = "".join(chr(b) if 32 <= b <= 126 else "." for b in row)
        lines.append(f"{start + i:08X}: {hexes}  {text}")
    return lines
