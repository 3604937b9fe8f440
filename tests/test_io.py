from concurrent.futures import ThreadPoolExecutor

import pytest

from fw_tool.firmware.errors import FirmwareLoadError, ValueTooLong
from fw_tool.firmware.io import MasterImage, read_image, write_image
from fw_tool.firmware.map import APPLICATION, BOOTLOADER
from fw_tool.firmware.validate import verify


def test_load(image_file, master_bytes):
    master = MasterImage.load(image_file)
    assert master.data == master_bytes
    assert isinstance(master.data, bytes)


def test_load_missing_file(tmp_path):
    with pytest.raises(FirmwareLoadError):
        MasterImage.load(tmp_path / "nope.bin")


@pytest.mark.parametrize("region", [BOOTLOADER, APPLICATION])
def test_load_rejects_corrupted_region(tmp_path, image, region):
    image[region.start + 40] ^= 0xFF
    path = tmp_path / "bad.bin"
    path.write_bytes(image)
    with pytest.raises(FirmwareLoadError, match=region.name):
        MasterImage.load(path)


def test_build_works_on_copy(image_file, master_bytes):
    master = MasterImage.load(image_file)
    built = master.build({"wifi_ssid": "mynetwork", "wifi_password": "mypassword"})
    assert master.data == master_bytes
    assert built["image"] != master_bytes
    assert built["patched"] == ["wifi_ssid", "wifi_password"]
    assert built["region"] == APPLICATION.start
    assert verify(built["image"], APPLICATION.start)
    assert verify(built["image"], BOOTLOADER.start)


def test_build_rejects_long_value(image_file, master_bytes):
    master = MasterImage.load(image_file)
    with pytest.raises(ValueTooLong):
        master.build({"wifi_ssid": "x" * 65})
    assert master.data == master_bytes


def test_parallel_builds_are_independent(image_file):
    master = MasterImage.load(image_file)
    names = [f"net-{i}" for i in range(16)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda n: master.build({"wifi_ssid": n, "wifi_password": n * 2}), names))
    for name, built in zip(names, results):
        img = built["image"]
        assert name.encode() + b"\x00" in img
        assert verify(img, APPLICATION.start)


def test_read_write(tmp_path, master_bytes):
    out = tmp_path / "sub" / "out.bin"
    result = write_image(out, master_bytes)
    assert result == {"bytes": len(master_bytes), "out": str(out)}
    assert read_image(out) == bytearray(master_bytes)


def test_build_reports_integrity_error(image_file, monkeypatch):
    import fw_tool.firmware.io as fw_io
    from fw_tool.firmware.errors import FirmwareError, IntegrityError

    master = MasterImage.load(image_file)
    monkeypatch.setattr(fw_io, "recompute", lambda buf, offset: buf)
    with pytest.raises(IntegrityError) as exc:
        master.build({"wifi_ssid": "mynetwork"})
    assert isinstance(exc.value, FirmwareError)
