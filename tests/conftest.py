import pytest

from bootimagetool.export import DirectoryExportStore

from fakes import BLOCK_DIR, TEST_CONFIG, FakeRootShell, make_boot_image, make_patched_image


@pytest.fixture
def config():
    return TEST_CONFIG


@pytest.fixture
def stock_image():
    return make_boot_image()


@pytest.fixture
def patched_image(stock_image):
    return make_patched_image(stock_image)


@pytest.fixture
def other_stock_image():
    return make_boot_image(kernel=b"Linux version 6.1.0")


@pytest.fixture
def shell(patched_image, other_stock_image):
    return FakeRootShell(
        files={
            f"{BLOCK_DIR}/boot_a": patched_image,
            f"{BLOCK_DIR}/boot_b": other_stock_image,
        }
    )


@pytest.fixture
def export_dir(tmp_path):
    d = tmp_path / "Download"
    d.mkdir()
    return d


@pytest.fixture
def store(export_dir):
    return DirectoryExportStore(export_dir)
