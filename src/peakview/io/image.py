import logging
from pathlib import Path

import numpy as np
import rawpy
from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import ImageDecodeError, ImageNotFoundError

logger = logging.getLogger(__name__)

RAW_EXTS = {
    ".cr2",
    ".cr3",
    ".dng",
    ".arw",
    ".nef",
    ".nrw",
    ".raf",
    ".orf",
    ".rw2",
    ".pef",
}
STD_EXTS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".tiff",
    ".tif",
    ".bmp",
    ".gif",
    ".heic",
    ".heif",
}
SUPPORTED_EXTS = tuple(RAW_EXTS | STD_EXTS)

try:
    import pillow_heif

    pillow_heif.register_heif_opener()
    HEIF_SUPPORTED = True
except ImportError:
    HEIF_SUPPORTED = False


def load_image(path):
    """
    Decodes an image file to a uint8 RGB array of shape (H, W, 3).

    RAW files go through rawpy with camera white balance; everything else is
    opened with Pillow, EXIF-rotated and converted to RGB.
    """
    path = Path(path)
    if not path.exists():
        raise ImageNotFoundError(path)

    if path.suffix.lower() in RAW_EXTS:
        return _load_raw(path)

    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            return np.asarray(img, dtype=np.uint8).copy()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        logger.error(f"Error decoding {path}: {e}")
        raise ImageDecodeError(e) from e


def _load_raw(path):
    try:
        with rawpy.imread(str(path)) as raw:
            return raw.postprocess(
                use_camera_wb=True,
                no_auto_bright=True,
                bright=1.0,
                output_bps=8,
            )
    except (rawpy.LibRawError, OSError) as e:
        logger.error(f"Error decoding RAW {path}: {e}")
        raise ImageDecodeError(e) from e


def as_rgb8(buffer):
    """Normalises a caller-supplied pixel buffer to contiguous uint8 (H, W, 3)."""
    arr = np.asarray(buffer)
    if arr.dtype != np.uint8:
        if np.issubdtype(arr.dtype, np.floating):
            arr = (np.clip(arr, 0.0, 1.0) * 255.0).astype(np.uint8)
        else:
            arr = np.clip(arr, 0, 255).astype(np.uint8)

    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
    elif arr.ndim == 3 and arr.shape[2] == 4:
        arr = arr[:, :, :3]
    elif arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"Unsupported pixel buffer shape: {arr.shape}")

    return np.ascontiguousarray(arr)
