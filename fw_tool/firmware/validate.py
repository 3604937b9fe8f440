# firmware/validate.py
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Optional

from .checksum import compute_checksum
from .digest import verify_digest
from .errors import ParseError
from .layout import parse_layout
from .map import DIGEST_FLAG_OFF

_logger = logging.getLogger(__name__)


@dataclass
class IntegrityReport:
    """Результат проверки одного региона (для вывода и логов)."""

    region_offset: int
    stored_checksum: Optional[int] = None
    computed_checksum: Optional[int] = None
    checksum_offset: Optional[int] = None
    digest_appended: bool = False
    digest_valid: Optional[bool] = None  # None: хеш не дописан
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        if self.error is not None or self.stored_checksum is None:
            return False
        if self.stored_checksum != self.computed_checksum:
            return False
        return self.digest_valid is not False

    def to_dict(self) -> dict:
        out = asdict(self)
        out["valid"] = self.valid
        return out


def diagnose(buf: bytes | bytearray | memoryview, region_offset: int) -> IntegrityReport:
    """
    Проверить регион и вернуть отчёт. Никогда не бросает исключений
    и не меняет буфер.
    """
    report = IntegrityReport(region_offset=region_offset)
    if region_offset < 0 or region_offset + DIGEST_FLAG_OFF + 1 > len(buf):
        report.error = "регион слишком мал для заголовка"
        return report

    try:
        layout = parse_layout(buf, region_offset)
    except ParseError as e:
        report.error = str(e)
        return report

    report.checksum_offset = layout.checksum_offset
    report.computed_checksum = compute_checksum(buf, region_offset, layout.segments)
    at = layout.absolute(layout.checksum_offset)
    if at >= len(buf):
        report.error = f"байт контрольной суммы 0x{at:X} за концом образа"
        return report
    report.stored_checksum = buf[at]

    report.digest_appended = layout.digest_appended
    if layout.digest_appended:
        report.digest_valid = verify_digest(buf, region_offset, layout.checksum_offset)
    return report


def verify(buf: bytes | bytearray | memoryview, region_offset: int) -> bool:
    report = diagnose(buf, region_offset)
    if report.valid:
        _logger.info(
            "Регион 0x%X: целостность подтверждена, контрольная сумма 0x%02X",
            region_offset,
            report.computed_checksum,
        )
    elif report.error:
        _logger.warning("Регион 0x%X: проверка не пройдена: %s", region_offset, report.error)
    else:
        _logger.warning(
            "Регион 0x%X: проверка не пройдена: в файле 0x%02X, вычислено 0x%02X, хеш %s",
            region_offset,
            report.stored_checksum,
            report.computed_checksum,
            {None: "отсутствует", True: "верен", False: "неверен"}[report.digest_valid],
        )
    return report.valid
