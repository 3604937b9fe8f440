# firmware/digest.py
"""SHA-256, дописанный после байта контрольной суммы (если байт 0x17 == 0x01)."""

from __future__ import annotations

import hashlib
import hmac

from .map import DIGEST_FLAG_OFF, DIGEST_FLAG_SET, DIGEST_SIZE


def digest_flag_set(buf: bytes | bytearray | memoryview, region_offset: int) -> bool:
    at = region_offset + DIGEST_FLAG_OFF
    return at < len(buf) and buf[at] == DIGEST_FLAG_SET


def compute_digest(buf: bytes | bytearray | memoryview, region_offset: int, checksum_offset: int) -> bytes:
    """Хеш байтов региона [0, checksum_offset] включительно."""
    end = region_offset + checksum_offset + 1
    return hashlib.sha256(buf[region_offset:end]).digest()


def verify_digest(buf: bytes | bytearray | memoryview, region_offset: int, checksum_offset: int) -> bool:
    start = region_offset + checksum_offset + 1
    if checksum_offset < 0 or start + DIGEST_SIZE > len(buf):
        return False
    stored = bytes(buf[start : start + DIGEST_SIZE])
    return hmac.compare_digest(stored, compute_digest(buf, region_offset, checksum_offset))
