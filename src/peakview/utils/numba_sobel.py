import numpy as np
from numba import njit, prange

from ..processing.constants import (
    LUMA_B_FIXED,
    LUMA_G_FIXED,
    LUMA_R_FIXED,
    LUMA_SCALE,
)


@njit(fastmath=True, cache=True, parallel=True)
def rgb_to_luma_kernel(img, out):
    """
    BT.709 luma of a uint8 (H, W, 3) image, truncated to uint8.
    Fixed-point weights keep the floor exact at integer boundaries.
    """
    rows, cols, _ = img.shape
    for r in prange(rows):
        for c in range(cols):
            y = (
                LUMA_R_FIXED * np.int32(img[r, c, 0])
                + LUMA_G_FIXED * np.int32(img[r, c, 1])
                + LUMA_B_FIXED * np.int32(img[r, c, 2])
            ) // LUMA_SCALE
            out[r, c] = y


@njit(cache=True)
def _sobel_row(gray, out, y):
    cols = gray.shape[1]
    for x in range(1, cols - 1):
        p00 = np.int32(gray[y - 1, x - 1])
        p01 = np.int32(gray[y - 1, x])
        p02 = np.int32(gray[y - 1, x + 1])
        p10 = np.int32(gray[y, x - 1])
        p12 = np.int32(gray[y, x + 1])
        p20 = np.int32(gray[y + 1, x - 1])
        p21 = np.int32(gray[y + 1, x])
        p22 = np.int32(gray[y + 1, x + 1])

        # Gx = [[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]]
        gx = (p02 + 2 * p12 + p22) - (p00 + 2 * p10 + p20)
        # Gy = [[-1, -2, -1], [0, 0, 0], [1, 2, 1]]
        gy = (p20 + 2 * p21 + p22) - (p00 + 2 * p01 + p02)

        mag = np.sqrt(np.float64(gx * gx + gy * gy))
        if mag > 255.0:
            mag = 255.0
        out[y, x] = np.uint8(mag)


@njit(cache=True, parallel=True)
def sobel_magnitude_kernel(gray, out, cancel_flag):
    """
    3x3 Sobel gradient magnitude, clipped to 255.

    gray: uint8 (H, W). out: uint8 (H, W), zero-initialised; border pixels
    are never written. Each interior row checks cancel_flag[0] before doing
    any work and owns its own output row.

    Returns the number of rows skipped because the flag was set.
    """
    rows = gray.shape[0]
    skipped = 0

    for y in prange(1, rows - 1):
        if cancel_flag[0] != 0:
            skipped += 1
        else:
            _sobel_row(gray, out, y)

    return skipped
