"""Tests for cinemagif.io."""

import logging

import pytest
from PIL import Image

from cinemagif.error_handling import InputError
from cinemagif.io import atomic_write, load_json, load_source_image, save_json, setup_logging


@pytest.mark.fast
class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_writes_target(self, tmp_path):
        target = tmp_path / "sub" / "out.bin"
        with atomic_write(target, "wb") as fh:
            fh.write(b"data")
        assert target.read_bytes() == b"data"
        assert list(target.parent.iterdir()) == [target]

    def test_failure_leaves_nothing(self, tmp_path):
        target = tmp_path / "out.bin"
        with pytest.raises(RuntimeError):
            with atomic_write(target, "wb") as fh:
                fh.write(b"partial")
                raise RuntimeError("stop")
        assert list(tmp_path.iterdir()) == []

    def test_failure_keeps_previous_file(self, tmp_path):
        target = tmp_path / "out.txt"
        target.write_text("old")
        with pytest.raises(RuntimeError):
            with atomic_write(target) as fh:
                fh.write("new")
                raise RuntimeError("stop")
        assert target.read_text() == "old"


@pytest.mark.fast
def test_json_round_trip(tmp_path):
    path = tmp_path / "data.json"
    save_json({"regions": [1, 2]}, path)
    assert load_json(path) == {"regions": [1, 2]}


@pytest.mark.fast
class TestLoadSourceImage:
    """Tests for decoding the source photograph."""

    def test_jpeg(self, jpeg_path):
        image = load_source_image(jpeg_path)
        assert (image.width, image.height, image.channels) == (64, 48, 3)

    def test_png_rgb(self, tmp_path):
        path = tmp_path / "a.png"
        Image.new("RGB", (3, 2), (1, 2, 3)).save(path)
        image = load_source_image(path)
        assert image.pixel(2, 1) == (1, 2, 3)

    @pytest.mark.parametrize("mode", ["L", "RGBA", "CMYK", "1"])
    def test_non_rgb_rejected(self, tmp_path, mode):
        path = tmp_path / "a.tiff"
        Image.new(mode, (3, 2)).save(path)
        with pytest.raises(InputError, match=f"mode {mode}"):
            load_source_image(path)

    def test_missing(self, tmp_path):
        with pytest.raises(InputError, match="not found"):
            load_source_image(tmp_path / "missing.jpg")


@pytest.mark.fast
def test_setup_logging_file_handler(tmp_path):
    logger = setup_logging(tmp_path / "logs", "warning")
    assert logger.name == "cinemagif"
    assert logging.getLogger().level == logging.WARNING
    assert len(list((tmp_path / "logs").glob("cinemagif_*.log"))) == 1
