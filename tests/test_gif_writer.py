"""Tests for cinemagif.gif_writer byte layout and interoperability."""

import struct
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from cinemagif.error_handling import EncodingError, InputError
from cinemagif.gif_writer import (
    AnimatedGifWriter,
    graphics_control_extension,
    image_descriptor,
    logical_screen_descriptor,
    loop_extension,
    write_gif,
)
from cinemagif.models import ImageBuffer, Palette
from cinemagif.warp import warp_frames

NETSCAPE_BLOCK = b"\x21\xff\x0bNETSCAPE2.0\x03\x01\x00\x00\x00"


@pytest.mark.fast
class TestBlocks:
    """Tests for the individual GIF blocks."""

    def test_screen_descriptor(self):
        palette = Palette.from_tuples([(0, 0, 0)] * 5)
        assert logical_screen_descriptor(300, 2, palette) == b"\x2c\x01\x02\x00\xf2\x00\x00"

    def test_loop_extension(self):
        assert loop_extension() == NETSCAPE_BLOCK
        assert loop_extension(3)[-3:-1] == b"\x03\x00"

    def test_graphics_control_extension(self):
        assert graphics_control_extension(3) == b"\x21\xf9\x04\x04\x03\x00\x00\x00"
        assert graphics_control_extension(0x1234)[4:6] == b"\x34\x12"

    def test_image_descriptor(self):
        assert image_descriptor(4, 1) == b"\x2c\x00\x00\x00\x00\x04\x00\x01\x00\x00"


@pytest.mark.fast
class TestWriteGif:
    """Tests for whole-file output."""

    def test_solid_gray_layout(self, tmp_path, gray_image):
        path = tmp_path / "gray.gif"
        result = write_gif(path, [gray_image] * 4, 3)
        data = path.read_bytes()

        assert data[:6] == b"GIF89a"
        width, height, packed = struct.unpack("<HHB", data[6:11])
        assert (width, height) == (8, 8)
        # One color still needs a two-entry table
        assert packed == 0xF0
        assert data[13:19] == b"\x80\x80\x80\x00\x00\x00"
        assert data[19:38] == NETSCAPE_BLOCK
        assert data.count(b"\x21\xf9\x04\x04\x03\x00\x00\x00") == 4
        assert data[-1:] == b"\x3b"

        assert result.frame_count == 4
        assert result.palette_size == 1
        assert result.bytes_written == len(data)

    def test_frame_structure_for_24_frames(self, tmp_path, gradient_image, center_region):
        frames = warp_frames(gradient_image, [center_region], 24)
        path = tmp_path / "loop.gif"
        write_gif(path, frames, 3)
        data = path.read_bytes()

        assert data.count(b"\x21\xf9\x04\x04\x03\x00\x00\x00") == 24
        assert data.count(b"NETSCAPE2.0\x03\x01\x00\x00\x00") == 1

    def test_pillow_decodes_frames(self, tmp_path, primaries_image):
        path = tmp_path / "primaries.gif"
        write_gif(path, [primaries_image, primaries_image], 7)

        with Image.open(path) as img:
            assert img.n_frames == 2
            assert img.info.get("loop") == 0
            assert img.info.get("duration") == 70
            for frame_index in range(2):
                img.seek(frame_index)
                rgb = img.convert("RGB")
                assert [rgb.getpixel((x, 0)) for x in range(4)] == [
                    (0, 0, 0),
                    (255, 0, 0),
                    (0, 255, 0),
                    (0, 0, 255),
                ]

    def test_pillow_decodes_large_palette(self, tmp_path, gradient_image):
        path = tmp_path / "gradient.gif"
        result = write_gif(path, [gradient_image], 0)
        assert result.palette_size == 256

        with Image.open(path) as img:
            decoded = np.asarray(img.convert("RGB"), dtype=np.int32)
        error = np.abs(decoded - gradient_image.samples.astype(np.int32))
        assert error.max() < 64

    def test_deterministic(self, tmp_path, gradient_image, center_region):
        frames = warp_frames(gradient_image, [center_region], 4)
        first, second = tmp_path / "a.gif", tmp_path / "b.gif"
        write_gif(first, frames)
        write_gif(second, frames)
        assert first.read_bytes() == second.read_bytes()

    def test_progress(self, tmp_path, gray_image):
        calls = []
        write_gif(
            tmp_path / "p.gif", [gray_image] * 3, progress=lambda d, t: calls.append((d, t))
        )
        assert calls == [(1, 3), (2, 3), (3, 3)]


@pytest.mark.fast
class TestWriteGifErrors:
    """Tests for rejected input and failed writes."""

    def test_empty_frames(self, tmp_path):
        with pytest.raises(InputError, match="At least one frame"):
            write_gif(tmp_path / "x.gif", [])

    def test_size_mismatch(self, tmp_path, gray_image, primaries_image):
        with pytest.raises(InputError, match="expected 8x8"):
            write_gif(tmp_path / "x.gif", [gray_image, primaries_image])
        assert not (tmp_path / "x.gif").exists()

    @pytest.mark.parametrize("delay", [-1, 65536])
    def test_delay_range(self, tmp_path, delay):
        with pytest.raises(InputError, match="Delay"):
            AnimatedGifWriter(tmp_path / "x.gif", delay_cs=delay)

    def test_unwritable_destination(self, tmp_path, gray_image):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")
        with pytest.raises(EncodingError, match="Failed to write output file"):
            write_gif(blocker / "out.gif", [gray_image])

    def test_failed_write_leaves_no_file(self, tmp_path, gray_image, monkeypatch):
        path = tmp_path / "broken.gif"

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("cinemagif.gif_writer.loop_extension", fail)

        with pytest.raises(EncodingError) as exc_info:
            write_gif(path, [gray_image])

        assert not path.exists()
        assert list(Path(tmp_path).iterdir()) == []
        assert "disk full" in str(exc_info.value)
