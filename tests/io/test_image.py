from unittest.mock import patch

import numpy as np
import pytest
import rawpy
from PIL import Image

from peakview.errors import ImageDecodeError, ImageNotFoundError
from peakview.io.image import as_rgb8, load_image


def test_load_png_as_rgb8(tmp_path):
    path = tmp_path / "red.png"
    Image.new("RGB", (7, 5), color=(255, 0, 0)).save(path)

    arr = load_image(path)

    assert arr.shape == (5, 7, 3)
    assert arr.dtype == np.uint8
    assert np.all(arr[:, :, 0] == 255)
    assert np.all(arr[:, :, 1:] == 0)


def test_load_converts_rgba_and_grayscale(tmp_path):
    rgba = tmp_path / "rgba.png"
    Image.new("RGBA", (4, 4), color=(10, 20, 30, 128)).save(rgba)
    gray = tmp_path / "gray.png"
    Image.new("L", (3, 2), color=99).save(gray)

    assert load_image(rgba).shape == (4, 4, 3)
    arr = load_image(gray)
    assert arr.shape == (2, 3, 3)
    assert np.all(arr == 99)


def test_load_missing_file(tmp_path):
    with pytest.raises(ImageNotFoundError) as exc:
        load_image(tmp_path / "missing.jpg")
    assert exc.value.kind == "FileNotFound"
    assert isinstance(exc.value, FileNotFoundError)


def test_load_garbage_file(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image at all")

    with pytest.raises(ImageDecodeError) as exc:
        load_image(path)
    assert exc.value.kind == "DecodeFailed"
    assert str(exc.value).startswith("Failed to load image:")
    assert exc.value.__cause__ is not None


def test_load_raw_decode_failure(tmp_path):
    path = tmp_path / "shot.dng"
    path.write_bytes(b"\x00" * 16)

    with patch(
        "peakview.io.image.rawpy.imread",
        side_effect=rawpy.LibRawFileUnsupportedError("unsupported"),
    ):
        with pytest.raises(ImageDecodeError):
            load_image(path)


def test_load_oversized_image_is_decode_failure(tmp_path, monkeypatch):
    path = tmp_path / "huge.png"
    Image.fromarray(np.zeros((10, 10, 3), dtype=np.uint8)).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    with pytest.raises(ImageDecodeError) as exc:
        load_image(path)
    assert exc.value.kind == "DecodeFailed"
    assert isinstance(exc.value.__cause__, Image.DecompressionBombError)


def test_as_rgb8_normalises_buffers():
    gray = np.full((2, 3), 7, dtype=np.uint8)
    assert as_rgb8(gray).shape == (2, 3, 3)

    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    assert as_rgb8(rgba).shape == (2, 2, 3)

    floats = np.ones((1, 1, 3), dtype=np.float32)
    assert as_rgb8(floats).tolist() == [[[255, 255, 255]]]

    wide = np.array([[[300, -5, 10]]], dtype=np.int32)
    assert as_rgb8(wide).tolist() == [[[255, 0, 10]]]


def test_as_rgb8_rejects_bad_shape():
    with pytest.raises(ValueError):
        as_rgb8(np.zeros((2, 2, 2), dtype=np.uint8))
