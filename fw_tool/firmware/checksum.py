# firmware/checksum.py
"""Однобайтовая XOR-сумма образа ESP.

Все байты данных всех сегментов сворачиваются XOR-ом по порядку,
результат XOR-ится с 0xEF. Аккумулятор первого сегмента берётся из его
первого байта, свёртка идёт со второго. Это та же сумма, что записывает
в образ сборщик, поэтому именно она считается действительной; CRC32 из
header.py только для справки.
"""

from __future__ import annotations

from typing import Iterable

from .layout import SegmentDescriptor
from .map import CHECKSUM_MAGIC


def xor_blob(buf: bytes | bytearray | memoryview, start: int, length: int, acc: int) -> int:
    for b in buf[start : start + length]:
        acc ^= b
    return acc


def compute_checksum(
    buf: bytes | bytearray | memoryview,
    region_offset: int,
    segments: Iterable[SegmentDescriptor],
) -> int:
    """Без сегментов сумма равна 0xEF."""
    acc = 0
    first = True
    for seg in segments:
        start = region_offset + seg.data_offset
        length = seg.length
        if first:
            first = False
            if length:
                acc = buf[start]
                start += 1
                length -= 1
        acc = xor_blob(buf, start, length, acc)
    return acc ^ CHECKSUM_MAGIC
