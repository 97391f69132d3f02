import logging
import time

import numpy as np

from ..errors import AnalysisCancelled
from ..utils.numba_histogram import luminance_histogram_kernel, rgb_histogram_kernel
from .constants import CANCEL_CHECK_INTERVAL

logger = logging.getLogger(__name__)


def calculate_rgb_histogram(img, token, band_rows=CANCEL_CHECK_INTERVAL):
    """Returns (r, g, b) uint32 arrays of 256 bins each."""
    start_time = time.perf_counter()
    img = np.ascontiguousarray(img, dtype=np.uint8)

    hist, cancelled = rgb_histogram_kernel(img, int(band_rows), token.buffer)
    if cancelled:
        raise AnalysisCancelled()

    elapsed = (time.perf_counter() - start_time) * 1000
    logger.debug(f"RGB histogram: Size: {img.shape[1]}x{img.shape[0]} | Time: {elapsed:.2f}ms")
    return hist[0], hist[1], hist[2]


def calculate_luminance_histogram(img, token, band_rows=CANCEL_CHECK_INTERVAL):
    """Returns the BT.709 luma histogram as a uint32 array of 256 bins."""
    start_time = time.perf_counter()
    img = np.ascontiguousarray(img, dtype=np.uint8)

    hist, cancelled = luminance_histogram_kernel(img, int(band_rows), token.buffer)
    if cancelled:
        raise AnalysisCancelled()

    elapsed = (time.perf_counter() - start_time) * 1000
    logger.debug(
        f"Luminance histogram: Size: {img.shape[1]}x{img.shape[0]} | Time: {elapsed:.2f}ms"
    )
    return hist
