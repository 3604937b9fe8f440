import logging

import pytest

from fw_tool.firmware.layout import parse_layout
from fw_tool.firmware.validate import diagnose, verify

from imagegen import APP_OFFSET


@pytest.mark.parametrize("offset", [0x0, APP_OFFSET])
def test_fresh_image_is_valid(image, offset):
    assert verify(image, offset)
    report = diagnose(image, offset)
    assert report.valid
    assert report.error is None
    assert report.stored_checksum == report.computed_checksum


def test_report_digest_status(image):
    assert diagnose(image, 0).digest_valid is None
    assert not diagnose(image, 0).digest_appended
    report = diagnose(image, APP_OFFSET)
    assert report.digest_appended
    assert report.digest_valid is True


def test_verify_does_not_mutate(image):
    before = bytes(image)
    verify(image, 0)
    verify(image, APP_OFFSET)
    diagnose(image, 0x12345)
    assert bytes(image) == before


def test_bad_checksum(image, caplog):
    cs = parse_layout(image, 0).checksum_offset
    image[cs] ^= 0x10
    with caplog.at_level(logging.WARNING, logger="fw_tool.firmware.validate"):
        assert not verify(image, 0)
    assert "0x0" in caplog.text
    report = diagnose(image, 0)
    assert report.stored_checksum == report.computed_checksum ^ 0x10
    assert not report.valid
    # соседний регион не затронут
    assert verify(image, APP_OFFSET)


def test_bad_digest_with_good_checksum(image):
    cs = parse_layout(image, APP_OFFSET).checksum_offset
    image[APP_OFFSET + cs + 5] ^= 0xFF
    report = diagnose(image, APP_OFFSET)
    assert report.stored_checksum == report.computed_checksum
    assert report.digest_valid is False
    assert not report.valid


def test_too_small_fails_closed():
    assert not verify(bytes(0x17), 0)
    assert diagnose(bytes(0x17), 0).error
    assert not verify(bytes(0x100), 0x100)
    assert not verify(bytes(0x100), -1)


def test_truncated_table_fails_closed(image):
    cut = bytes(image[: APP_OFFSET + 40])
    report = diagnose(cut, APP_OFFSET)
    assert not report.valid
    assert report.error
    assert report.to_dict()["valid"] is False


def test_checksum_past_end(image):
    cs = parse_layout(image, 0).checksum_offset
    report = diagnose(bytes(image[:cs]), 0)
    assert report.error
    assert report.stored_checksum is None
    assert report.computed_checksum is not None
