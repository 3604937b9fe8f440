from __future__ import annotations
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import List, Optional

import typer
from rich import print
from rich.logging import RichHandler
from rich.markup import escape

from .config import LOG_FILE, LOG_LEVEL, FIRMWARE_ESP32C6
from .firmware.errors import FirmwareError, FirmwareLoadError
from .firmware.header import crc32_informational, hexdump, inspect_header
from .firmware.io import MasterImage, read_image, write_image
from .firmware.layout import parse_layout
from .firmware.map import APPLICATION, REGIONS, region_by_offset
from .firmware.rewrite import recompute
from .firmware.slots import SLOTS
from .firmware.validate import diagnose

app = typer.Typer(add_completion=False, help="FW CLI: проверка, разбор и патч образов ESP32.")


@app.callback()
def _setup(verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Подробнее; дважды - отладка")):
    level = {0: LOG_LEVEL, 1: "INFO"}.get(verbose, "DEBUG")
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(show_path=False)], force=True)


def _log_event(kind: str, payload: dict):
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "payload": payload,
    }
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _parse_offset(value: str) -> int:
    try:
        return int(value, 0)
    except ValueError:
        raise typer.BadParameter(f"не число: {value!r}")


def _region_name(offset: int) -> str:
    region = region_by_offset(offset)
    return region.name if region else f"0x{offset:X}"


def _load(path: Path) -> bytearray:
    if not path.exists():
        print(f"[red]Файл не найден:[/] {path}")
        raise typer.Exit(code=2)
    return read_image(path)


@app.command()
def verify(
    image: Path = typer.Argument(..., help="Образ прошивки"),
    offset: Optional[List[str]] = typer.Option(None, help="Смещение региона (по умолчанию 0x0 и 0x20000)"),
):
    """Проверить контрольную сумму и SHA-256 регионов."""
    data = _load(image)
    offsets = [_parse_offset(o) for o in offset] if offset else [r.start for r in REGIONS]

    all_ok = True
    for off in offsets:
        report = diagnose(data, off)
        _log_event("verify", {"image": str(image), **report.to_dict()})
        name = _region_name(off)
        if report.valid:
            print(f"[green]{name}:[/] целостность подтверждена, сумма 0x{report.computed_checksum:02X}")
            continue
        all_ok = False
        if report.error:
            print(f"[red]{name}:[/] {report.error}")
            continue
        digest = {None: "нет", True: "верен", False: "НЕВЕРЕН"}[report.digest_valid]
        print(
            f"[red]{name}:[/] проверка не пройдена - в файле 0x{report.stored_checksum:02X}, "
            f"вычислено 0x{report.computed_checksum:02X}, SHA-256: {digest}"
        )

    if not all_ok:
        raise typer.Exit(code=1)


@app.command()
def inspect(
    image: Path = typer.Argument(..., help="Образ прошивки"),
    offset: str = typer.Option("0x0", help="Смещение региона"),
    hex_dump: bool = typer.Option(False, "--hex", help="Hex-дамп вокруг контрольной суммы"),
):
    """Разобрать заголовок, таблицу сегментов и контрольную сумму."""
    data = _load(image)
    off = _parse_offset(offset)
    try:
        header = inspect_header(data, off)
        layout = parse_layout(data, off)
    except FirmwareError as e:
        print(f"[red]Ошибка разбора:[/] {escape(str(e))}")
        raise typer.Exit(code=2)
    report = diagnose(data, off)

    print(f"[bold]Регион {_region_name(off)}[/] ({len(data)} байт в файле)")
    print(f"  Magic:        0x{header.magic:02X} {'[green]ok[/]' if header.magic_valid else '[red]неверный[/]'}")
    print(f"  Chip ID:      0x{header.chip_id:04X} {'[green]ESP32-C6[/]' if header.chip_id_valid else '[yellow]не ESP32-C6[/]'}")
    print(f"  Entry:        0x{header.entry_addr:08X}")
    print(f"  SPI mode:     {header.spi_mode}")
    print(f"  Сегментов:    {layout.segment_count}")
    for i, seg in enumerate(layout.segments):
        print(f"    [cyan]{i}[/]: load 0x{seg.load_addr:08X}, {seg.length} байт @ +0x{seg.data_offset:X}")

    crc = crc32_informational(data, off, layout.checksum_offset)
    print("[bold]Контрольная сумма:[/]")
    print(f"  Смещение:     0x{layout.checksum_offset:X} (абс. 0x{layout.absolute(layout.checksum_offset):X})")
    if report.stored_checksum is not None:
        print(f"  В файле:      0x{report.stored_checksum:02X}")
    print(f"  Вычислено:    0x{report.computed_checksum:02X}")
    print(f"  SHA-256:      {'дописан' if layout.digest_appended else 'нет'}"
          + ("" if report.digest_valid is None else (" (верен)" if report.digest_valid else " (НЕВЕРЕН)")))
    print(f"  [dim]CRC32 (справочно): 0x{crc:08X}[/]")
    print(f"  Статус:       {'[green]OK[/]' if report.valid else '[red]ОШИБКА[/]'}")

    if hex_dump:
        print("[bold]Hex-дамп:[/]")
        for line in hexdump(data, layout.absolute(layout.checksum_offset) - 16, 32):
            print(escape(line))

    _log_event("inspect", {"image": str(image), "crc32": crc, **report.to_dict()})
    if not report.valid:
        raise typer.Exit(code=1)


@app.command()
def slots():
    """Показать слоты конфигурации и их ширину."""
    for slot in SLOTS.values():
        print(f"[cyan]{slot.name}[/] - {slot.width} байт")


@app.command()
def patch(
    out_file: Path = typer.Argument(..., help="Куда сохранить образ"),
    image: Path = typer.Option(FIRMWARE_ESP32C6, help="Шаблонный образ"),
    ssid: str = typer.Option("", help="Имя Wi-Fi сети"),
    password: str = typer.Option("", help="Пароль Wi-Fi"),
    payment_address: str = typer.Option("", help="Адрес для платежей"),
    auth_token: str = typer.Option("", help="Токен авторизации"),
    service_uri: str = typer.Option("", help="Адрес сервиса"),
    offset: str = typer.Option(f"0x{APPLICATION.start:X}", help="Смещение патчируемого региона"),
):
    """
    Подставить значения в слоты и пересчитать контрольную сумму.
    Шаблон не изменяется: патч делается на копии.
    """
    try:
        master = MasterImage.load(image)
    except FirmwareLoadError as e:
        print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)

    values = {
        "wifi_ssid": ssid,
        "wifi_password": password,
        "payment_address": payment_address,
        "auth_token": auth_token,
        "service_uri": service_uri,
    }
    try:
        built = master.build(values, _parse_offset(offset))
    except FirmwareError as e:
        print(f"[red]Ошибка патча:[/] {escape(str(e))}")
        raise typer.Exit(code=2)

    result = write_image(out_file, built["image"])
    _log_event("patch", {
        "source": str(image),
        "out": result["out"],
        "region": built["region"],
        "patched": built["patched"],
        "missing": built["missing"],
        "checksum": built["checksum"],
    })
    for name in built["missing"]:
        print(f"[yellow]Слот не найден, пропущен:[/] {name}")
    print(f"[green]Готово:[/] {', '.join(built['patched']) or 'нет изменений'}; "
          f"сумма 0x{built['checksum']:02X}, {result['bytes']} байт -> {result['out']}")


@app.command("recompute")
def recompute_cmd(
    image: Path = typer.Argument(..., help="Образ прошивки"),
    offset: str = typer.Option(f"0x{APPLICATION.start:X}", help="Смещение региона"),
    out: Optional[Path] = typer.Option(None, help="Куда сохранить (по умолчанию - на место)"),
):
    """Пересчитать контрольную сумму и SHA-256 региона."""
    data = _load(image)
    off = _parse_offset(offset)
    try:
        recompute(data, off)
    except FirmwareError as e:
        print(f"[red]Ошибка пересчёта:[/] {escape(str(e))}")
        raise typer.Exit(code=2)
    result = write_image(out or image, data)
    _log_event("recompute", {"image": str(image), "region": off, **result})
    print(f"[green]Готово:[/] {result['bytes']} байт -> {result['out']}")


if __name__ == "__main__":
    app()
