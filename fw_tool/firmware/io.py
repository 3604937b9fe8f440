# firmware/io.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import FirmwareLoadError, IntegrityError
from .map import APPLICATION, REGIONS
from .patch import patch
from .rewrite import recompute
from .validate import diagnose

_logger = logging.getLogger(__name__)


# ---- Мастер-образ: загружается один раз, дальше только копии ----
@dataclass(frozen=True)
class MasterImage:
    """
    Шаблонный образ прошивки только для чтения.
    Патч всегда делается на личной копии (build), мастер не меняется,
    поэтому один экземпляр можно отдавать параллельным запросам.
    """
    path: Path
    data: bytes

    @classmethod
    def load(cls, path: Path) -> "MasterImage":
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FirmwareLoadError(f"Не удалось прочитать образ {path}: {e}") from e

        for region in REGIONS:
            report = diagnose(data, region.start)
            if not report.valid:
                raise FirmwareLoadError(
                    f"Образ {path} не прошёл проверку целостности региона {region.name} "
                    f"(0x{region.start:X}): {report.error or report.to_dict()}"
                )
        _logger.info("Мастер-образ %s загружен, %d байт", path, len(data))
        return cls(path=path, data=data)

    def copy(self) -> bytearray:
        return bytearray(self.data)

    def build(self, values: Mapping[str, Optional[str]], region_offset: int = APPLICATION.start) -> dict:
        """Копия -> патч -> пересчёт суммы -> проверка."""
        buf = self.copy()
        result = patch(buf, region_offset, values)
        recompute(buf, region_offset)
        report = diagnose(buf, region_offset)
        if not report.valid:
            raise IntegrityError(f"Образ после пересчёта не прошёл проверку: {report.to_dict()}")
        return {
            "image": bytes(buf),
            "patched": result.patched,
            "missing": result.missing,
            "checksum": report.computed_checksum,
            "region": region_offset,
        }


# ---- Высокоуровневые операции ----
def read_image(path: Path) -> bytearray:
    return bytearray(Path(path).read_bytes())


def write_image(path: Path, data: bytes) -> dict:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(bytes(data))
    return {"bytes": len(data), "out": str(out_path)}
