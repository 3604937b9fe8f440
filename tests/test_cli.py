import json

import pytest
from typer.testing import CliRunner

import fw_tool.main as cli
from fw_tool.firmware.layout import parse_layout
from fw_tool.firmware.validate import verify

from imagegen import APP_OFFSET

runner = CliRunner()


@pytest.fixture(autouse=True)
def session_log(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "session.jsonl"
    monkeypatch.setattr(cli, "LOG_FILE", path)
    return path


def _events(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_verify_ok(image_file, session_log):
    result = runner.invoke(cli.app, ["verify", str(image_file)])
    assert result.exit_code == 0, result.output
    assert "BOOTLOADER" in result.output
    assert "APPLICATION" in result.output
    events = _events(session_log)
    assert [e["kind"] for e in events] == ["verify", "verify"]
    assert all(e["payload"]["valid"] for e in events)


def test_verify_corrupted(tmp_path, image):
    cs = parse_layout(image, 0).checksum_offset
    image[cs] ^= 0x01
    path = tmp_path / "bad.bin"
    path.write_bytes(image)
    result = runner.invoke(cli.app, ["verify", str(path), "--offset", "0x0"])
    assert result.exit_code == 1


def test_verify_missing_file(tmp_path):
    result = runner.invoke(cli.app, ["verify", str(tmp_path / "none.bin")])
    assert result.exit_code == 2


def test_inspect(image_file):
    result = runner.invoke(cli.app, ["inspect", str(image_file), "--offset", hex(APP_OFFSET), "--hex"])
    assert result.exit_code == 0, result.output
    assert "ESP32-C6" in result.output
    assert "CRC32" in result.output


def test_slots():
    result = runner.invoke(cli.app, ["slots"])
    assert result.exit_code == 0
    assert "wifi_ssid" in result.output
    assert "auth_token" in result.output


def test_patch(tmp_path, image_file, master_bytes, session_log):
    out = tmp_path / "out.bin"
    result = runner.invoke(cli.app, [
        "patch", str(out),
        "--image", str(image_file),
        "--ssid", "mynetwork",
        "--password", "mypassword",
        "--service-uri", "https://example.org",
    ])
    assert result.exit_code == 0, result.output
    assert image_file.read_bytes() == master_bytes
    data = out.read_bytes()
    assert b"mynetwork\x00" in data
    assert verify(data, 0)
    assert verify(data, APP_OFFSET)

    event = _events(session_log)[-1]
    assert event["kind"] == "patch"
    assert event["payload"]["patched"] == ["wifi_ssid", "wifi_password"]
    assert event["payload"]["missing"] == ["service_uri"]
    assert "mypassword" not in session_log.read_text(encoding="utf-8")


def test_patch_value_too_long(tmp_path, image_file):
    out = tmp_path / "out.bin"
    result = runner.invoke(cli.app, ["patch", str(out), "--image", str(image_file), "--ssid", "x" * 65])
    assert result.exit_code == 2
    assert not out.exists()


def test_patch_unreadable_master_is_fatal(tmp_path):
    result = runner.invoke(cli.app, ["patch", str(tmp_path / "out.bin"), "--image", str(tmp_path / "none.bin")])
    assert result.exit_code == 1


def test_recompute(tmp_path, image, master_bytes):
    image[APP_OFFSET + 40] ^= 0x01
    path = tmp_path / "fw.bin"
    path.write_bytes(image)
    assert not verify(image, APP_OFFSET)

    result = runner.invoke(cli.app, ["recompute", str(path)])
    assert result.exit_code == 0, result.output
    assert verify(path.read_bytes(), APP_OFFSET)


def test_patch_integrity_error_is_reported(tmp_path, image_file, monkeypatch):
    import fw_tool.firmware.io as fw_io

    monkeypatch.setattr(fw_io, "recompute", lambda buf, offset: buf)
    out = tmp_path / "out.bin"
    result = runner.invoke(cli.app, ["patch", str(out), "--image", str(image_file), "--ssid", "mynetwork"])
    assert result.exit_code == 2
    assert not out.exists()


def test_slots_plain_separator():
    result = runner.invoke(cli.app, ["slots"])
    assert "wifi_ssid - 64" in result.output
    assert "—" not in result.output
