import numpy as np
from numba import njit, prange

from ..processing.constants import (
    HISTOGRAM_BINS,
    LUMA_B_FIXED,
    LUMA_G_FIXED,
    LUMA_R_FIXED,
    LUMA_SCALE,
)


@njit(fastmath=True, cache=True, parallel=True)
def rgb_histogram_kernel(img, band_rows, cancel_flag):
    """
    Per-channel 256-bin counts of a uint8 (H, W, 3) image.

    Rows are split into bands of band_rows; every band checks cancel_flag[0]
    once, counts into its own bins, and the bands are summed afterwards.
    Returns (hist, cancelled) where hist has shape (3, 256).
    """
    rows, cols, _ = img.shape
    n_bands = (rows + band_rows - 1) // band_rows
    partial = np.zeros((n_bands, 3, HISTOGRAM_BINS), dtype=np.uint32)
    skipped = 0

    for band in prange(n_bands):
        if cancel_flag[0] != 0:
            skipped += 1
        else:
            r0 = band * band_rows
            r1 = min(r0 + band_rows, rows)
            for r in range(r0, r1):
                for c in range(cols):
                    partial[band, 0, img[r, c, 0]] += 1
                    partial[band, 1, img[r, c, 1]] += 1
                    partial[band, 2, img[r, c, 2]] += 1

    hist = np.zeros((3, HISTOGRAM_BINS), dtype=np.uint32)
    if skipped > 0:
        return hist, True

    for band in range(n_bands):
        for ch in range(3):
            for i in range(HISTOGRAM_BINS):
                hist[ch, i] += partial[band, ch, i]

    return hist, False


@njit(fastmath=True, cache=True, parallel=True)
def luminance_histogram_kernel(img, band_rows, cancel_flag):
    """
    256-bin counts of BT.709 luma (truncated) of a uint8 (H, W, 3) image.
    Same banding and cancellation behaviour as rgb_histogram_kernel.
    Returns (hist, cancelled) where hist has shape (256,).
    """
    rows, cols, _ = img.shape
    n_bands = (rows + band_rows - 1) // band_rows
    partial = np.zeros((n_bands, HISTOGRAM_BINS), dtype=np.uint32)
    skipped = 0

    for band in prange(n_bands):
        if cancel_flag[0] != 0:
            skipped += 1
        else:
            r0 = band * band_rows
            r1 = min(r0 + band_rows, rows)
            for r in range(r0, r1):
                for c in range(cols):
                    y = (
                        LUMA_R_FIXED * np.int32(img[r, c, 0])
                        + LUMA_G_FIXED * np.int32(img[r, c, 1])
                        + LUMA_B_FIXED * np.int32(img[r, c, 2])
                    ) // LUMA_SCALE
                    partial[band, y] += 1

    hist = np.zeros(HISTOGRAM_BINS, dtype=np.uint32)
    if skipped > 0:
        return hist, True

    for band in range(n_bands):
        for i in range(HISTOGRAM_BINS):
            hist[i] += partial[band, i]

    return hist, False
