import logging
import time

import cv2
import numpy as np

from ..utils.numba_sobel import rgb_to_luma_kernel
from .constants import DOWNSAMPLE_TARGET, DOWNSAMPLE_THRESHOLD

logger = logging.getLogger(__name__)


def downsample_if_needed(img, threshold=DOWNSAMPLE_THRESHOLD, target=DOWNSAMPLE_TARGET):
    """
    Shrinks ``img`` so its longer side equals ``target`` when either side is
    at least ``threshold``.

    Returns ``(working_img, scale)`` where ``scale`` is ``None`` if the image
    was left alone, else ``(original_w / new_w, original_h / new_h)``.
    """
    h, w = img.shape[:2]
    if w < threshold and h < threshold:
        return img, None

    start_time = time.perf_counter()
    longer = max(w, h)
    scale_factor = target / longer
    # Integer floor so the longer side lands exactly on target
    new_w = max(1, w * target // longer)
    new_h = max(1, h * target // longer)

    resized = cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_LANCZOS4)

    scale_back = (w / new_w, h / new_h)
    elapsed = (time.perf_counter() - start_time) * 1000
    logger.debug(
        f"Downsample: {w}x{h} -> {new_w}x{new_h} (scale: {scale_factor:.2f}) | Time: {elapsed:.2f}ms"
    )
    return resized, scale_back


def to_grayscale(img):
    """BT.709 luma of a uint8 RGB image as a uint8 (H, W) array."""
    img = np.ascontiguousarray(img)
    out = np.empty(img.shape[:2], dtype=np.uint8)
    rgb_to_luma_kernel(img, out)
    return out
