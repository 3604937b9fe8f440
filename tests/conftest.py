import pytest

from imagegen import build_merged


@pytest.fixture(scope="session")
def master_bytes():
    return build_merged()


@pytest.fixture
def image(master_bytes):
    return bytearray(master_bytes)


@pytest.fixture
def image_file(tmp_path, master_bytes):
    path = tmp_path / "firmware.bin"
    path.write_bytes(master_bytes)
    return path
