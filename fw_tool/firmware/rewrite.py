# firmware/rewrite.py
from __future__ import annotations

import logging

from .checksum import compute_checksum
from .digest import compute_digest
from .errors import TruncatedImage
from .layout import parse_layout
from .map import DIGEST_SIZE

_logger = logging.getLogger(__name__)


def recompute(buf: bytearray, region_offset: int) -> bytearray:
    """Пересчитать и записать контрольную сумму (и SHA-256, если он дописан).

    Вызывать после каждого патча, иначе образ не пройдёт проверку.
    Повторный вызов ничего не меняет.
    """
    layout = parse_layout(buf, region_offset)
    at = layout.absolute(layout.checksum_offset)
    end = at + 1 + (DIGEST_SIZE if layout.digest_appended else 0)
    if end > len(buf):
        raise TruncatedImage("Область контрольной суммы выходит за конец образа", needed=end, available=len(buf))

    checksum = compute_checksum(buf, region_offset, layout.segments)
    buf[at] = checksum
    if layout.digest_appended:
        buf[at + 1 : end] = compute_digest(buf, region_offset, layout.checksum_offset)

    _logger.debug("Регион 0x%X: контрольная сумма 0x%02X записана по 0x%X", region_offset, checksum, at)
    return buf
